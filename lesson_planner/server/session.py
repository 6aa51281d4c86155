# server/session.py
"""
Plan session controller.

Drives one generation at a time through

    idle -> validating -> encoding -> requesting -> succeeded | failed -> idle

and owns the displayed state: the active plan, the last error message
and any storage warning. History and signatures are injected stores;
the controller is their only writer.
"""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Literal, Optional

from . import attachments
from .errors import (
    GenerationFailedError,
    InputValidationError,
    MissingAttachmentError,
    PlannerError,
    StorageUnavailableError,
)
from .history_repo import HistoryRepo
from .llm import PlanGenerationClient
from .schemas import Attachment, Plan, PlanMeta, SessionStateOut, SessionStatus, SignaturePair
from .signature_repo import SignatureRepo


SubmitStatus = Literal["succeeded", "failed", "already_running"]


@dataclass(frozen=True)
class SubmitResult:
    status: SubmitStatus
    plan: Optional[Plan] = None
    error: Optional[PlannerError] = None


def _now_ms() -> int:
    return int(time.time() * 1000)


def _new_plan_id() -> str:
    return f"plan-{uuid.uuid4().hex}"


class PlanSession:
    def __init__(
        self,
        generator: PlanGenerationClient,
        history: HistoryRepo,
        signatures: SignatureRepo,
    ):
        self._generator = generator
        self._history = history
        self._signatures = signatures

        self.state: SessionStatus = "idle"
        self.active_plan: Optional[Plan] = None
        self.error: Optional[str] = None
        self.storage_warning: Optional[str] = None
        # bumped by reset(); a request started before the bump is not displayed
        self._epoch = 0

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def history(self) -> HistoryRepo:
        return self._history

    @property
    def signatures(self) -> SignaturePair:
        return self._signatures.current

    @property
    def is_loading(self) -> bool:
        return self.state not in ("idle", "succeeded", "failed")

    def snapshot(self) -> SessionStateOut:
        return SessionStateOut(
            state=self.state,
            is_loading=self.is_loading,
            error=self.error,
            storage_warning=self.storage_warning,
            active_plan=self.active_plan,
        )

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------

    async def submit(
        self,
        class_number: str,
        subject: str,
        date_range: str,
        upload: Any = None,
        attachment: Optional[Attachment] = None,
        bilingual: bool = False,
    ) -> SubmitResult:
        # check-and-set with no await in between
        if self.state != "idle":
            print("[session] Generation already running; ignoring submit.")
            return SubmitResult(status="already_running")
        self.state = "validating"
        epoch = self._epoch

        try:
            plan = await self._run(
                class_number, subject, date_range, upload, attachment, bilingual, epoch
            )
        except PlannerError as e:
            return self._fail(e, epoch)
        except Exception as e:
            print("[session] Unexpected error during generation:", repr(e))
            return self._fail(GenerationFailedError(), epoch)
        finally:
            self.state = "idle"

        return SubmitResult(status="succeeded", plan=plan)

    async def _run(
        self,
        class_number: str,
        subject: str,
        date_range: str,
        upload: Any,
        attachment: Optional[Attachment],
        bilingual: bool,
        epoch: int,
    ) -> Plan:
        meta = PlanMeta(
            class_number=(class_number or "").strip(),
            subject=(subject or "").strip(),
            date_range=(date_range or "").strip(),
        )
        if not (meta.class_number and meta.subject and meta.date_range):
            raise InputValidationError()
        if attachment is None and upload is None:
            raise MissingAttachmentError()

        self.error = None
        self.storage_warning = None
        self.active_plan = None

        if attachment is None:
            self.state = "encoding"
            attachment = await attachments.encode(upload)

        self.state = "requesting"
        content = await self._generator.generate(
            meta.class_number,
            meta.subject,
            meta.date_range,
            attachment,
            bilingual=bilingual,
            prior_remedial_notes=self._history.most_recent_remedial_notes(),
        )

        plan = Plan(
            **content.model_dump(),
            id=_new_plan_id(),
            timestamp=_now_ms(),
            meta=meta,
        )
        try:
            self._history.append(plan)
        except StorageUnavailableError as e:
            self.storage_warning = e.user_message

        self.state = "succeeded"
        if epoch == self._epoch:
            self.active_plan = plan
        print(f"[session] Plan {plan.id} generated; history size {len(self._history)}")
        return plan

    def _fail(self, error: PlannerError, epoch: int) -> SubmitResult:
        self.state = "failed"
        # a reset() since the submit means nobody is waiting for this error
        if epoch == self._epoch:
            self.error = error.user_message
        return SubmitResult(status="failed", error=error)

    def select_plan(self, plan_id: str) -> Plan:
        plan = self._history.get(plan_id)
        if plan is None:
            raise KeyError(plan_id)
        self.active_plan = plan
        self.error = None
        return plan

    def reset(self) -> None:
        """Back to an empty form; a running request is left to finish."""
        self._epoch += 1
        self.active_plan = None
        self.error = None

    def save_signatures(self, pair: SignaturePair) -> SignaturePair:
        try:
            return self._signatures.save(pair)
        except StorageUnavailableError as e:
            self.storage_warning = e.user_message
            return self._signatures.current
