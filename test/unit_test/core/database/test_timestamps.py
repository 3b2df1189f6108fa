"""Timestamp columns store naive UTC datetimes on every table."""

from datetime import datetime, timedelta

import pytest
from sqlalchemy import DateTime
from sqlmodel import SQLModel

from namc_portal.core.database.base import utc_now
from namc_portal.core.database.entities import Event, User


def _datetime_columns():
    for table in SQLModel.metadata.sorted_tables:
        for column in table.columns:
            try:
                python_type = column.type.python_type
            except NotImplementedError:
                continue
            if python_type is datetime:
                yield column


class TestColumnTypes:
    def test_every_timestamp_is_a_plain_datetime_column(self):
        columns = list(_datetime_columns())

        assert len(columns) > 20
        for column in columns:
            assert type(column.type) is DateTime, f"{column.table.name}.{column.name}"
            assert not column.type.timezone, f"{column.table.name}.{column.name}"


class TestRoundTrip:
    @pytest.mark.asyncio
    async def test_naive_values_are_written_and_read_back(self, session, user_factory, persist):
        locked_until = utc_now() + timedelta(minutes=15)
        user = await user_factory(locked_until=locked_until)
        (event,) = await persist(
            Event(title="Mixer", description="Spring mixer", start_date=datetime(2026, 6, 1, 17, 30), created_by_id=user.id)
        )

        stored = await session.get(User, user.id)
        stored_event = await session.get(Event, event.id)

        assert stored.locked_until == locked_until
        assert stored.locked_until.tzinfo is None
        assert stored.created_at.tzinfo is None
        assert stored_event.start_date == datetime(2026, 6, 1, 17, 30)
