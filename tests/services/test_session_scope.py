"""session_scope(): the caller-side unit of work around flush-only services."""

from uuid import uuid4

import pytest
from sqlalchemy import func, select

from ohada_kernel.db.engine import get_session, session_scope
from ohada_kernel.models.company import Company


def _count(name: str) -> int:
    session = get_session()
    try:
        return session.execute(
            select(func.count()).select_from(Company).where(Company.name == name)
        ).scalar_one()
    finally:
        session.close()


class TestSessionScope:
    def test_exception_rolls_back_and_propagates(self, db_engine, captured_logs):
        name = f"Rolled back {uuid4().hex[:8]}"
        with pytest.raises(RuntimeError, match="boom"):
            with session_scope() as session:
                session.add(Company(name=name, local_currency="CDF"))
                session.flush()
                raise RuntimeError("boom")

        assert _count(name) == 0
        rolled_back = [
            r for r in captured_logs() if r["message"] == "transaction_rolled_back"
        ]
        assert rolled_back[0]["exc_type"] == "RuntimeError"

    def test_normal_exit_commits(self, db_engine):
        name = f"Committed {uuid4().hex[:8]}"
        with session_scope() as session:
            company = Company(name=name, local_currency="CDF")
            session.add(company)

        try:
            assert _count(name) == 1
        finally:
            with session_scope() as session:
                session.delete(session.get(Company, company.id))
