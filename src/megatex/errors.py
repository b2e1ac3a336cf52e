"""Error definitions for megatex.

Every failure carries a stable code, a human message and a context dict
(entry name, archive, phase, ...) so the CLI and the JSON reporter can
surface it without string parsing.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

E_ARCHIVE = "E_ARCHIVE"
E_ENTRY_MISSING = "E_ENTRY_MISSING"
E_DECODE = "E_DECODE"
E_ENCODE = "E_ENCODE"
E_DIMENSION = "E_DIMENSION"
E_ATLAS_IO = "E_ATLAS_IO"
E_ATLAS_SCHEMA = "E_ATLAS_SCHEMA"
E_BACKUP_LOAD = "E_BACKUP_LOAD"
E_EMPTY_DATASET = "E_EMPTY_DATASET"
E_FALLBACK_BUDGET = "E_FALLBACK_BUDGET"
E_INTERNAL = "E_INTERNAL"


@dataclass
class MegatexError(Exception):
    code: str
    message: str
    context: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        return f"{self.code}: {self.message}" + (
            f" | ctx={self.context}" if self.context else ""
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "context": self.context or {},
        }

    def with_context(self, **extra: Any) -> "MegatexError":
        """Add identifying keys without overwriting the innermost ones."""
        ctx = dict(extra)
        ctx.update(self.context or {})
        self.context = ctx
        return self


class ArchiveError(MegatexError):
    pass


class NotFoundError(MegatexError):
    pass


class DecodeError(MegatexError):
    pass


class EncodeError(MegatexError):
    pass


class DimensionMismatchError(MegatexError):
    pass


class PersistenceError(MegatexError):
    pass


class BackupLoadError(MegatexError):
    pass


class BlitBoundsError(MegatexError):
    pass


class PolicyError(MegatexError):
    """The input data is unsuitable (as opposed to an I/O failure)."""


class EmptyDatasetError(PolicyError):
    pass


class ExcessiveFallbackError(PolicyError):
    @property
    def failures(self) -> List[str]:
        return list((self.context or {}).get("failures", []))

    @property
    def count(self) -> int:
        return int((self.context or {}).get("count", 0))


def decode_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> DecodeError:
    return DecodeError(code=E_DECODE, message=message, context=context)


def dimension_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> DimensionMismatchError:
    return DimensionMismatchError(
        code=E_DIMENSION, message=message, context=context
    )


def internal_error(
    message: str, context: Optional[Dict[str, Any]] = None
) -> BlitBoundsError:
    return BlitBoundsError(code=E_INTERNAL, message=message, context=context)


def empty_dataset_error(sources: List[str]) -> EmptyDatasetError:
    return EmptyDatasetError(
        code=E_EMPTY_DATASET,
        message=f"No eligible textures found in {len(sources)} source archive(s)",
        context={"sources": list(sources)},
    )


def fallback_budget_error(
    failures: List[str], total: int, max_rate: float
) -> ExcessiveFallbackError:
    rate = len(failures) / total if total else 0.0
    return ExcessiveFallbackError(
        code=E_FALLBACK_BUDGET,
        message=(
            f"{len(failures)} of {total} squares fell back to the backup "
            f"archive (rate {rate:.2%} > max {max_rate:.2%})"
        ),
        context={
            "failures": list(failures),
            "count": len(failures),
            "total": total,
            "rate": rate,
            "max_rate": max_rate,
        },
    )


__all__ = [
    "MegatexError",
    "ArchiveError",
    "NotFoundError",
    "DecodeError",
    "EncodeError",
    "DimensionMismatchError",
    "PersistenceError",
    "BackupLoadError",
    "BlitBoundsError",
    "PolicyError",
    "EmptyDatasetError",
    "ExcessiveFallbackError",
    "decode_error",
    "dimension_error",
    "internal_error",
    "empty_dataset_error",
    "fallback_budget_error",
    "E_ARCHIVE",
    "E_ENTRY_MISSING",
    "E_DECODE",
    "E_ENCODE",
    "E_DIMENSION",
    "E_ATLAS_IO",
    "E_ATLAS_SCHEMA",
    "E_BACKUP_LOAD",
    "E_EMPTY_DATASET",
    "E_FALLBACK_BUDGET",
    "E_INTERNAL",
]
