"""Conversion history persistence: record, lookup, and listing"""

from datetime import datetime

from sqlmodel import Session, select

from notetex.core.models import ConversionResult
from notetex.crud.models import Conversion, ConversionStatus


def get_last_conversion(session: Session, source_path: str) -> Conversion | None:
    """Return the recorded conversion for a source note, or None."""
    return session.exec(select(Conversion).where(Conversion.source_path == source_path)).one_or_none()


def list_conversions(session: Session, limit: int | None = None) -> list[Conversion]:
    """Return recorded conversions, most recent first."""
    stmt = select(Conversion).order_by(Conversion.converted_at.desc())
    if limit:
        stmt = stmt.limit(limit)
    return list(session.exec(stmt).all())


def record_conversion(session: Session, result: ConversionResult) -> tuple[Conversion, ConversionStatus]:
    """Upsert the history row for result.source_path.

    Status is 'created' for a new note, 'unchanged' when the output hash matches
    the previous run, else 'updated'. Flushes but does not commit; caller controls the transaction.
    """
    compiled = result.compile.success if result.compile else None
    row = get_last_conversion(session, result.source_path)

    if row is None:
        row = Conversion(
            source_path=result.source_path,
            output_path=result.output_path,
            source_hash=result.source_hash,
            output_hash=result.output_hash,
            status=ConversionStatus.created,
            compiled=compiled,
        )
        session.add(row)
        session.flush()
        return row, ConversionStatus.created

    status = ConversionStatus.unchanged if row.output_hash == result.output_hash else ConversionStatus.updated
    row.output_path = result.output_path
    row.source_hash = result.source_hash
    row.output_hash = result.output_hash
    row.status = status
    row.runs += 1
    if compiled is not None:
        row.compiled = compiled
    row.converted_at = datetime.now()
    session.add(row)
    session.flush()
    return row, status
