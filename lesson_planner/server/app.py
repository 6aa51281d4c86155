# server/app.py
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse

from .errors import (
    FileReadError,
    GenerationFailedError,
    InputValidationError,
    MissingAttachmentError,
)
from .history_repo import SORT_DIRECTIONS, SORT_KEYS, HistoryRepo
from .llm import PlanGenerationClient
from .render import history_rows, render_plan_html
from .schemas import HistoryOut, HistoryRowOut, SessionStateOut, SignaturePair, SignaturesIn
from .session import PlanSession
from .signature_repo import SignatureRepo
from .storage import LocalStorage

# Load .env from the project root
ROOT_DIR = Path(__file__).resolve().parent.parent.parent
load_dotenv(ROOT_DIR / ".env")

_ERROR_STATUS = {
    InputValidationError: 400,
    MissingAttachmentError: 400,
    FileReadError: 400,
    GenerationFailedError: 502,
}


def build_session(storage: Optional[LocalStorage] = None) -> PlanSession:
    storage = storage or LocalStorage()
    return PlanSession(
        generator=PlanGenerationClient(),
        history=HistoryRepo(storage),
        signatures=SignatureRepo(storage),
    )


def create_app(session: Optional[PlanSession] = None) -> FastAPI:
    app = FastAPI(title="KVS Lesson Plan Generator")
    app.state.session = session or build_session()

    # local single-user tool; the UI may be served from anywhere
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _session() -> PlanSession:
        return app.state.session

    # -----------------------------------------------------------------------
    # Health
    # -----------------------------------------------------------------------

    @app.get("/health")
    def health() -> Dict[str, Any]:
        return {"ok": True, "ts": datetime.now(timezone.utc).isoformat()}

    # -----------------------------------------------------------------------
    # /plan – generation and the active plan
    # -----------------------------------------------------------------------

    @app.post("/plan", response_model=SessionStateOut)
    async def generate_plan(
        class_number: str = Form(""),
        subject: str = Form(""),
        date_range: str = Form(""),
        bilingual: bool = Form(False),
        syllabus: Optional[UploadFile] = File(None),
    ) -> SessionStateOut:
        # browsers send an empty part when no file was picked
        if syllabus is not None and not syllabus.filename:
            syllabus = None

        session = _session()
        result = await session.submit(
            class_number=class_number,
            subject=subject,
            date_range=date_range,
            upload=syllabus,
            bilingual=bilingual,
        )
        if result.status == "already_running":
            raise HTTPException(status_code=409, detail="generation_already_running")
        if result.status == "failed":
            status = _ERROR_STATUS.get(type(result.error), 500)
            raise HTTPException(status_code=status, detail=result.error.user_message)
        return session.snapshot()

    @app.get("/plan/active", response_model=SessionStateOut)
    def active_plan() -> SessionStateOut:
        return _session().snapshot()

    @app.post("/plan/reset", response_model=SessionStateOut)
    def reset_plan() -> SessionStateOut:
        session = _session()
        session.reset()
        return session.snapshot()

    @app.get("/plan/{plan_id}/print", response_class=HTMLResponse)
    def print_plan(plan_id: str) -> HTMLResponse:
        session = _session()
        plan = session.history.get(plan_id)
        if plan is None:
            raise HTTPException(status_code=404, detail="plan_not_found")
        return HTMLResponse(render_plan_html(plan, session.signatures))

    # -----------------------------------------------------------------------
    # History + dashboard
    # -----------------------------------------------------------------------

    @app.get("/history", response_model=HistoryOut)
    def history() -> HistoryOut:
        return HistoryOut(plans=list(_session().history.plans))

    @app.get("/history/{plan_id}", response_model=SessionStateOut)
    def select_history_item(plan_id: str) -> SessionStateOut:
        session = _session()
        try:
            session.select_plan(plan_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="plan_not_found")
        return session.snapshot()

    @app.get("/dashboard", response_model=List[HistoryRowOut])
    def dashboard(sort: str = "timestamp", direction: str = "descending") -> List[HistoryRowOut]:
        if sort not in SORT_KEYS or direction not in SORT_DIRECTIONS:
            raise HTTPException(status_code=400, detail="invalid_sort")
        return history_rows(_session().history.sorted_view(sort, direction))

    # -----------------------------------------------------------------------
    # Signatures
    # -----------------------------------------------------------------------

    @app.get("/signatures", response_model=SignaturePair)
    def get_signatures() -> SignaturePair:
        return _session().signatures

    @app.put("/signatures", response_model=SignaturePair)
    def save_signatures(payload: SignaturesIn) -> SignaturePair:
        return _session().save_signatures(payload)

    return app


app = create_app()
