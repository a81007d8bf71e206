"""
Report view-models: everything a printed daily report needs, with no rendering.

Weather is resolved first (it may write today's row); all remaining reads share one
snapshot so the domains of a report cannot disagree with each other.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import List, Mapping, Optional

from flask import current_app

from sitelog.services.aggregation import DomainAggregate, PeriodAggregator, PeriodFigures
from sitelog.services.row_budget import (
    COMBINED_PAGE,
    MANPOWER_PAGE,
    SMATY_PAGE,
    WORK_STATUS_PAGE,
    BudgetedRows,
    budget_rows,
    get_max_rows,
)
from sitelog.services.stores import (
    CatalogItem,
    CatalogStore,
    RowLimitStore,
    SqlCatalogStore,
    SqlRowLimitStore,
    SqlTransactionStore,
    SqlWeatherStore,
    TransactionStore,
    WorkLogEntry,
)
from sitelog.services.weather import KmaForecastClient, WeatherSync, WeatherView, weather_client
from sitelog.utils.helpers import previous_day

logger = logging.getLogger(__name__)


@dataclass
class ReportHeader:
    site_name: str
    selected_date: date
    weather: Optional[WeatherView]
    max_rows: int

    def to_dict(self) -> dict:
        return dict(
            site_name=self.site_name,
            date=self.selected_date.isoformat(),
            previous_date=previous_day(self.selected_date).isoformat(),
            weather=self.weather.to_dict() if self.weather else None,
            max_rows=self.max_rows,
        )


@dataclass
class ManpowerReport:
    header: ReportHeader
    personnel: BudgetedRows
    materials: BudgetedRows
    equipment: BudgetedRows
    personnel_totals: PeriodFigures

    @property
    def overflow(self) -> bool:
        return self.personnel.overflow or self.materials.overflow or self.equipment.overflow

    def to_dict(self) -> dict:
        return dict(
            **self.header.to_dict(),
            personnel=self.personnel.to_dict(),
            materials=self.materials.to_dict(),
            equipment=self.equipment.to_dict(),
            personnel_totals=self.personnel_totals.to_dict(),
            overflow=self.overflow,
        )


@dataclass
class WorkStatusReport:
    header: ReportHeader
    today: BudgetedRows
    previous: BudgetedRows

    @property
    def overflow(self) -> bool:
        return self.today.overflow or self.previous.overflow

    def to_dict(self) -> dict:
        return dict(
            **self.header.to_dict(),
            today=self.today.to_dict(),
            previous=self.previous.to_dict(),
            overflow=self.overflow,
        )


@dataclass
class SmatyWorkStatusReport:
    """The WorkStatusForSmaty sheet: today's work log only, with no weather and no previous day."""
    header: ReportHeader
    today: BudgetedRows

    @property
    def overflow(self) -> bool:
        return self.today.overflow

    def to_dict(self) -> dict:
        return dict(
            site_name=self.header.site_name,
            date=self.header.selected_date.isoformat(),
            max_rows=self.header.max_rows,
            today=self.today.to_dict(),
            overflow=self.overflow,
        )


@dataclass
class CombinedReport:
    header: ReportHeader
    today: BudgetedRows
    previous: BudgetedRows
    personnel: BudgetedRows
    materials: BudgetedRows
    equipment: BudgetedRows
    personnel_totals: PeriodFigures

    @property
    def overflow(self) -> bool:
        return any(
            b.overflow for b in (self.today, self.previous, self.personnel, self.materials, self.equipment)
        )

    def to_dict(self) -> dict:
        return dict(
            **self.header.to_dict(),
            today=self.today.to_dict(),
            previous=self.previous.to_dict(),
            personnel=self.personnel.to_dict(),
            materials=self.materials.to_dict(),
            equipment=self.equipment.to_dict(),
            personnel_totals=self.personnel_totals.to_dict(),
            overflow=self.overflow,
        )


@dataclass
class SubmissionStatus:
    selected_date: date
    submitted: List[CatalogItem]
    missing: List[CatalogItem]

    def to_dict(self) -> dict:
        def item(c: CatalogItem) -> dict:
            return dict(id=c.id, name=c.name, trade=c.specification)

        return dict(
            date=self.selected_date.isoformat(),
            submitted=[item(c) for c in self.submitted],
            missing=[item(c) for c in self.missing],
        )


def _sorted_log(entries: List[WorkLogEntry]) -> List[WorkLogEntry]:
    return sorted(entries, key=lambda e: (e.company_name.casefold(), e.id))


class ReportAssembler:
    def __init__(
        self,
        catalog: CatalogStore,
        transactions: TransactionStore,
        weather_sync: WeatherSync,
        row_limits: RowLimitStore,
        site_name_fallback: str = "Untitled site",
    ):
        self.catalog = catalog
        self.transactions = transactions
        self.weather_sync = weather_sync
        self.row_limits = row_limits
        self.site_name_fallback = site_name_fallback
        self.aggregator = PeriodAggregator(catalog, transactions)

    def _weather(self, d: date) -> WeatherView:
        return WeatherView.from_snapshot(self.weather_sync.snapshot_for(d))

    def _header(self, d: date, weather: Optional[WeatherView], page: str) -> ReportHeader:
        return ReportHeader(
            site_name=self.catalog.site_name() or self.site_name_fallback,
            selected_date=d,
            weather=weather,
            max_rows=get_max_rows(self.row_limits, page),
        )

    def _budget_aggregates(self, aggregates: Mapping[str, DomainAggregate], limit: int, page: str):
        return (
            budget_rows(aggregates["personnel"].rows, limit, page=page),
            budget_rows(aggregates["material"].rows, limit, page=page),
            budget_rows(aggregates["equipment"].rows, limit, page=page),
        )

    def manpower(self, d: date) -> ManpowerReport:
        weather = self._weather(d)
        with self.transactions.read_snapshot():
            header = self._header(d, weather, MANPOWER_PAGE)
            aggregates = self.aggregator.all_domains(d)
        personnel, materials, equipment = self._budget_aggregates(aggregates, header.max_rows, MANPOWER_PAGE)
        return ManpowerReport(
            header=header,
            personnel=personnel,
            materials=materials,
            equipment=equipment,
            personnel_totals=aggregates["personnel"].totals(),
        )

    def work_status(self, d: date) -> WorkStatusReport:
        weather = self._weather(d)
        with self.transactions.read_snapshot():
            header = self._header(d, weather, WORK_STATUS_PAGE)
            today = _sorted_log(self.transactions.work_log(d))
            previous = _sorted_log(self.transactions.work_log(previous_day(d)))
        return WorkStatusReport(
            header=header,
            today=budget_rows(today, header.max_rows, page=WORK_STATUS_PAGE),
            previous=budget_rows(previous, header.max_rows, page=WORK_STATUS_PAGE),
        )

    def work_status_smaty(self, d: date) -> SmatyWorkStatusReport:
        with self.transactions.read_snapshot():
            header = self._header(d, None, SMATY_PAGE)
            today = _sorted_log(self.transactions.work_log(d))
        return SmatyWorkStatusReport(
            header=header,
            today=budget_rows(today, header.max_rows, page=SMATY_PAGE),
        )

    def combined(self, d: date) -> CombinedReport:
        weather = self._weather(d)
        with self.transactions.read_snapshot():
            header = self._header(d, weather, COMBINED_PAGE)
            today = _sorted_log(self.transactions.work_log(d))
            previous = _sorted_log(self.transactions.work_log(previous_day(d)))
            aggregates = self.aggregator.all_domains(d)
        limit = header.max_rows
        personnel, materials, equipment = self._budget_aggregates(aggregates, limit, COMBINED_PAGE)
        return CombinedReport(
            header=header,
            today=budget_rows(today, limit, page=COMBINED_PAGE),
            previous=budget_rows(previous, limit, page=COMBINED_PAGE),
            personnel=personnel,
            materials=materials,
            equipment=equipment,
            personnel_totals=aggregates["personnel"].totals(),
        )

    def submission_status(self, d: date) -> SubmissionStatus:
        """Active companies that have / have not entered a work record for `d`."""
        with self.transactions.read_snapshot():
            companies = self.catalog.companies(include_completed=False)
            written = {e.company_id for e in self.transactions.work_log(d)}
        companies = sorted(companies, key=lambda c: (c.name, c.specification or ""))
        return SubmissionStatus(
            selected_date=d,
            submitted=[c for c in companies if c.id in written],
            missing=[c for c in companies if c.id not in written],
        )


def build_weather_sync(session, config: Mapping, clock=None, client: Optional[KmaForecastClient] = None) -> WeatherSync:
    if client is None:
        client = weather_client(current_app)
    kwargs = dict(offset_hours=int(config.get("REPORT_UTC_OFFSET_HOURS", 9)))
    if clock is not None:
        kwargs["clock"] = clock
    return WeatherSync(SqlWeatherStore(session), client, **kwargs)


def build_report_assembler(session, config: Mapping, weather_sync: Optional[WeatherSync] = None) -> ReportAssembler:
    return ReportAssembler(
        catalog=SqlCatalogStore(session),
        transactions=SqlTransactionStore(session),
        weather_sync=weather_sync or build_weather_sync(session, config),
        row_limits=SqlRowLimitStore(session),
        site_name_fallback=config.get("SITE_NAME_FALLBACK", "Untitled site"),
    )
