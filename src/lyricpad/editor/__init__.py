"""Pad model, persistence and history helpers."""

from .history import compute_word_count, derive_preview, derive_title
from .pad_model import CURRENT_PAD_KEY, PAD_PREFIX, Pad, SaveState, generate_pad_id
from .pad_store import PadListing, PadSession, PadStore

__all__ = [
    "CURRENT_PAD_KEY",
    "PAD_PREFIX",
    "Pad",
    "PadListing",
    "PadSession",
    "PadStore",
    "SaveState",
    "compute_word_count",
    "derive_preview",
    "derive_title",
    "generate_pad_id",
]
