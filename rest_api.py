import dataclasses
import datetime
import logging
import os
from typing import List, Optional

from fastapi import Body, FastAPI, HTTPException

from algorithms import CalendarTools
from config import APP_VERSION, YamlConfig
from consistency_service import ConsistencyService
from highlight_service import HighlightService
from lift_log import LiftLogRepository
from models import LiftEntry
from recap_service import YearRecapService, format_tonnage
from stats_service import StatisticsService, mark_historical_prs
from tonnage_service import TonnageService

logger = logging.getLogger(__name__)

LOG_ENV = "LIFT_LOG"


def _table_to_dict(table: dict) -> dict:
    return {
        lift_type: [[lift.to_dict() for lift in bucket] for bucket in buckets]
        for lift_type, buckets in table.items()
    }


class LiftAnalyticsAPI:
    """Provides REST endpoints over a lift history snapshot."""

    def __init__(
        self,
        csv_path: Optional[str] = None,
        yaml_path: Optional[str] = None,
        *,
        today: Optional[str] = None,
    ) -> None:
        self.log = LiftLogRepository(csv_path or os.environ.get(LOG_ENV, "lifts.csv"))
        self.config = YamlConfig(yaml_path)
        self.fixed_today = today
        self.cache: dict = {}
        self.entries: List[LiftEntry] = mark_historical_prs(self.log.fetch_all())
        self.app = FastAPI(title="Lift Analytics API", version=APP_VERSION)
        self._setup_routes()

    @property
    def today(self) -> str:
        return self.fixed_today or datetime.date.today().isoformat()

    @property
    def statistics(self) -> StatisticsService:
        return StatisticsService(self.entries, today=self.today, cache=self.cache)

    def replace_entries(self, entries: List[LiftEntry]) -> None:
        self.entries = mark_historical_prs(sorted(entries, key=lambda e: e.date))
        self.cache.clear()

    @staticmethod
    def _date_param(value: Optional[str], default: str) -> str:
        if value is None:
            return default
        parsed = CalendarTools.parse(value)
        if parsed is None:
            raise HTTPException(status_code=400, detail=f"invalid date: {value}")
        return parsed.isoformat()

    @staticmethod
    def _unit_param(unit: str) -> str:
        if unit not in ("lb", "kg"):
            raise HTTPException(status_code=400, detail=f"invalid unit: {unit}")
        return unit

    def _setup_routes(self) -> None:
        @self.app.get("/health")
        def health():
            return {"status": "ok", "version": APP_VERSION, "entries": len(self.entries)}

        @self.app.get("/stats/overview")
        def stats_overview():
            return self.statistics.overview()

        @self.app.get("/stats/lift_types")
        def stats_lift_types():
            return [s.to_dict() for s in self.statistics.lift_types()]

        @self.app.get("/stats/personal_records")
        def stats_personal_records(lift_type: str = None, last_12_months: bool = False):
            all_time, last_year = self.statistics.top_lifts_by_type_and_reps()
            table = last_year if last_12_months else all_time
            if lift_type is not None:
                if lift_type not in table:
                    raise HTTPException(status_code=404, detail=f"unknown lift type: {lift_type}")
                table = {lift_type: table[lift_type]}
            return _table_to_dict(table)

        @self.app.get("/stats/records")
        def stats_records(lift_type: str = None):
            formula = self.config.settings().e1rm_formula
            return self.statistics.personal_records(lift_type, formula)

        @self.app.get("/stats/recent_pr_tier")
        def stats_recent_pr_tier(lift_type: str, days: int = 60):
            if days <= 0:
                raise HTTPException(status_code=400, detail="days must be positive")
            formula = self.config.settings().e1rm_formula
            return {
                "lift_type": lift_type,
                "tier": self.statistics.recent_pr_tier(lift_type, days, formula),
            }

        @self.app.get("/stats/lifetime_tonnage")
        def stats_lifetime_tonnage(unit: str = None):
            unit = self._unit_param(unit) if unit else self.config.settings().preferred_unit
            result = self.statistics.lifetime_tonnage(unit)
            result["formatted"] = format_tonnage(result["primary_total"])
            return result

        @self.app.get("/stats/session_momentum")
        def stats_session_momentum():
            return self.statistics.session_momentum()

        @self.app.get("/stats/weekly_streak")
        def stats_weekly_streak():
            return ConsistencyService(self.statistics).weekly_streak()

        @self.app.get("/stats/consistency")
        def stats_consistency():
            return ConsistencyService(self.statistics).consistency()

        @self.app.get("/stats/tonnage/session")
        def stats_session_tonnage(date: str, unit: str = "lb"):
            date = self._date_param(date, self.today)
            unit = self._unit_param(unit)
            tonnage = TonnageService(self.statistics)
            return {"date": date, "unit": unit, "tonnage": tonnage.session_tonnage_for_date(date, unit)}

        @self.app.get("/stats/tonnage/lift")
        def stats_lift_tonnage(date: str, lift_type: str, unit: str = "lb"):
            date = self._date_param(date, self.today)
            unit = self._unit_param(unit)
            tonnage = TonnageService(self.statistics)
            return {
                "date": date,
                "lift_type": lift_type,
                "unit": unit,
                "tonnage": tonnage.lift_tonnage_for_date(date, lift_type, unit),
            }

        @self.app.get("/stats/tonnage/average")
        def stats_average_tonnage(end_date: str = None, lift_type: str = None, unit: str = "lb"):
            end_date = self._date_param(end_date, self.today)
            unit = self._unit_param(unit)
            tonnage = TonnageService(self.statistics)
            if lift_type:
                return tonnage.average_lift_session_tonnage(end_date, lift_type, unit)
            return tonnage.average_session_tonnage(end_date, unit)

        @self.app.get("/stats/tonnage/range")
        def stats_tonnage_range(end_date: str = None, unit: str = "lb"):
            end_date = self._date_param(end_date, self.today)
            unit = self._unit_param(unit)
            return TonnageService(self.statistics).session_tonnage_percentile_range(end_date, unit)

        @self.app.get("/stats/neglected")
        def stats_neglected():
            return TonnageService(self.statistics).neglected_lift_types()

        @self.app.get("/highlights/pool")
        def highlights_pool():
            service = HighlightService(self.statistics, self.config.settings())
            pool = service.build_pool()
            fallback = pool["fallback_memory"]
            return {
                "selection_pool": [c.to_dict() for c in pool["selection_pool"]],
                "fallback_memory": fallback.to_dict() if fallback is not None else None,
                "fingerprint": pool["fingerprint"],
                "target_pool_size": pool["target_pool_size"],
                "candidate_count": pool["candidate_count"],
            }

        @self.app.get("/recap/years")
        def recap_years():
            return YearRecapService(self.statistics).years_with_data()

        @self.app.get("/recap/{year}")
        def recap_year(year: int, unit: str = None):
            service = YearRecapService(self.statistics)
            if year not in service.years_with_data():
                raise HTTPException(status_code=404, detail=f"no data for {year}")
            unit = self._unit_param(unit) if unit else self.config.settings().preferred_unit
            return service.year_metrics(year, unit)

        @self.app.post("/entries")
        def post_entries(rows: List[dict] = Body(...)):
            try:
                entries = [LiftEntry.from_dict(row) for row in rows]
            except (TypeError, ValueError) as e:
                raise HTTPException(status_code=400, detail=str(e))
            normalized = []
            for entry in entries:
                parsed = CalendarTools.parse(entry.date)
                if parsed is None:
                    raise HTTPException(status_code=400, detail=f"invalid date: {entry.date}")
                normalized.append(dataclasses.replace(entry, date=parsed.isoformat()))
            self.replace_entries(normalized)
            logger.info("replaced lift log with %d entries", len(entries))
            return {"entries": len(self.entries), "fingerprint": self.statistics.fingerprint()}


api = LiftAnalyticsAPI()
app = api.app

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app)
