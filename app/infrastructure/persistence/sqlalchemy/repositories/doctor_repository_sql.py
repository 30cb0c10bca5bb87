from typing import List
from fastapi.concurrency import run_in_threadpool
from sqlalchemy import and_, func, or_
from sqlalchemy.engine import Engine
from sqlmodel import Session, select

from .....db.models.health.doctor import Doctor, decode_list, list_token
from .....application.ports.doctor_store import (
    DoctorRecord,
    DoctorStore,
    StorePage,
    StoreQuery,
)


class SqlDoctorStore(DoctorStore):
    def __init__(self, engine: Engine, supports_fee_ranges: bool = True):
        self.engine = engine
        self.supports_fee_ranges = supports_fee_ranges

    def _column(self, name: str):
        if name not in Doctor.model_fields:
            raise ValueError(f"Unknown doctor field: {name}")
        return getattr(Doctor, name)

    def _to_record(self, d: Doctor) -> DoctorRecord:
        return DoctorRecord(
            id=d.id,
            name=d.name,
            specialty=d.specialty,
            experience_years=d.experience,
            rating=d.rating,
            location=d.location,
            availability_text=d.availability or "",
            fee_amount=d.fee,
            gender=d.gender,
            languages=tuple(decode_list(d.languages)),
            clinic_name=d.clinic_name,
            available_days=tuple(decode_list(d.available_days)),
            image_ref=d.profile_image,
        )

    def _conditions(self, q: StoreQuery) -> list:
        conditions = []
        if q.specialty:
            conditions.append(Doctor.specialty == q.specialty)
        if q.location:
            conditions.append(Doctor.location == q.location)
        if q.min_experience is not None:
            conditions.append(Doctor.experience >= q.min_experience)
        if q.min_rating is not None:
            conditions.append(Doctor.rating >= q.min_rating)
        if q.gender:
            conditions.append(Doctor.gender == q.gender)
        if q.clinic_names:
            conditions.append(Doctor.clinic_name.in_(q.clinic_names))
        if q.languages_any:
            conditions.append(or_(*[Doctor.languages.contains(list_token(v), autoescape=True) for v in q.languages_any]))
        if q.days_any:
            conditions.append(or_(*[Doctor.available_days.contains(list_token(v), autoescape=True) for v in q.days_any]))
        if q.search_term:
            conditions.append(or_(*[
                self._column(name).icontains(q.search_term, autoescape=True)
                for name in q.search_fields
            ]))
        if q.fee_bands and self.supports_fee_ranges:
            bands = []
            for band in q.fee_bands:
                if band.high is None:
                    bands.append(Doctor.fee >= band.low)
                else:
                    bands.append(and_(Doctor.fee >= band.low, Doctor.fee <= band.high))
            # NULL fees never satisfy a comparison, so they drop out here
            conditions.append(or_(*bands))
        return conditions

    def _ordering(self, q: StoreQuery) -> list:
        column = self._column(q.sort_field)
        return [
            column.is_(None),  # missing values last in either direction
            column.desc() if q.descending else column.asc(),
            Doctor.id.asc(),
        ]

    def _query_sync(self, q: StoreQuery) -> StorePage:
        with Session(self.engine) as session:
            count_query = select(func.count()).select_from(Doctor)
            query = select(Doctor)
            for condition in self._conditions(q):
                count_query = count_query.where(condition)
                query = query.where(condition)

            total = session.exec(count_query).one()
            rows = session.exec(
                query.order_by(*self._ordering(q)).offset(q.offset).limit(q.limit)
            ).all()
            return StorePage(records=[self._to_record(r) for r in rows], total=int(total))

    def _distinct_sync(self, field: str) -> List[str]:
        column = self._column(field)
        with Session(self.engine) as session:
            rows = session.exec(select(column).distinct().order_by(column)).all()
            return [r for r in rows if r]

    async def query(self, query: StoreQuery) -> StorePage:
        return await run_in_threadpool(self._query_sync, query)

    async def distinct_values(self, field: str) -> List[str]:
        return await run_in_threadpool(self._distinct_sync, field)
