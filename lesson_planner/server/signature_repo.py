# server/signature_repo.py

from __future__ import annotations

from .errors import StorageUnavailableError
from .schemas import SignaturePair
from .storage import LocalStorage

SIGNATURES_KEY = "signatures"


class SignatureRepo:
    """Teacher/principal signature images, read and written wholesale."""

    def __init__(self, storage: LocalStorage):
        self._storage = storage
        self._pair = self.load()

    @property
    def current(self) -> SignaturePair:
        return self._pair

    def load(self) -> SignaturePair:
        try:
            text = self._storage.get_item(SIGNATURES_KEY)
            if not text or not text.strip():
                return SignaturePair()
            return SignaturePair.model_validate_json(text)
        except Exception as e:
            print(f"[signature_repo] Falling back to empty signatures: {e}")
            return SignaturePair()

    def save(self, pair: SignaturePair) -> SignaturePair:
        self._pair = SignaturePair(teacher=pair.teacher, principal=pair.principal)
        try:
            self._storage.set_item(SIGNATURES_KEY, self._pair.model_dump_json())
        except StorageUnavailableError:
            print("[signature_repo] Signatures kept in memory only; write failed.")
            raise
        return self._pair
