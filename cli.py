import argparse
import json
import logging
import random
from typing import Optional

from algorithms import WeightConverter
from config import YamlConfig
from consistency_service import ConsistencyService
from highlight_service import HighlightService
from lift_log import LiftLogRepository
from recap_service import YearRecapService, format_tonnage, tonnage_equivalent
from stats_service import StatisticsService, mark_historical_prs
from tonnage_service import TonnageService


def load_statistics(csv_path: str, today: Optional[str] = None) -> StatisticsService:
    entries = mark_historical_prs(LiftLogRepository(csv_path).fetch_all())
    return StatisticsService(entries, today=today)


def summary(stats: StatisticsService, unit: str) -> dict:
    result = stats.overview()
    result["lifetime_tonnage"] = stats.lifetime_tonnage(unit)
    result["session_momentum"] = stats.session_momentum()
    result["prs_last_12_months"] = stats.prs_in_last_12_months()
    return result


def tonnage(stats: StatisticsService, unit: str, end_date: Optional[str]) -> dict:
    service = TonnageService(stats)
    end_date = end_date or stats.today
    lifetime = stats.lifetime_tonnage(unit)
    return {
        "lifetime": lifetime,
        "formatted": format_tonnage(lifetime["primary_total"]),
        "average_session": service.average_session_tonnage(end_date, unit),
        "typical_range": service.session_tonnage_percentile_range(end_date, unit),
        "neglected": service.neglected_lift_types(),
    }


def highlight(stats: StatisticsService, settings, seed: Optional[int]) -> Optional[dict]:
    service = HighlightService(stats, settings)
    chosen = service.pick(service.build_pool(), random.Random(seed))
    return chosen.to_dict() if chosen is not None else None


def recap(stats: StatisticsService, year: Optional[int], unit: str, seed: Optional[int]) -> dict:
    service = YearRecapService(stats)
    years = service.years_with_data()
    if not years:
        return {"years": []}
    year = year or years[-1]
    if year not in years:
        raise SystemExit(f"no lifts logged in {year}")
    metrics = service.year_metrics(year, unit)
    metrics["equivalent"] = tonnage_equivalent(
        metrics["tonnage"], metrics["primary_unit"], random.Random(seed)
    )
    return metrics


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Lift history analytics")
    parser.add_argument("--csv", default="lifts.csv")
    parser.add_argument("--settings", default=None)
    parser.add_argument("--today", default=None, help="Pin today's date (YYYY-MM-DD)")
    parser.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], default=None
    )
    sub = parser.add_subparsers(dest="cmd", required=True)

    summ = sub.add_parser("summary")
    summ.add_argument("--unit", choices=["kg", "lb"], default=None)

    prs = sub.add_parser("prs")
    prs.add_argument("--lift", default=None)

    sub.add_parser("streak")
    sub.add_parser("consistency")

    ton = sub.add_parser("tonnage")
    ton.add_argument("--unit", choices=["kg", "lb"], default=None)
    ton.add_argument("--end-date", default=None)

    hl = sub.add_parser("highlight")
    hl.add_argument("--seed", type=int, default=None)

    rc = sub.add_parser("recap")
    rc.add_argument("--year", type=int, default=None)
    rc.add_argument("--unit", choices=["kg", "lb"], default=None)
    rc.add_argument("--seed", type=int, default=None)

    conv = sub.add_parser("convert")
    conv.add_argument("--weight", type=float, required=True)
    conv.add_argument("--unit", choices=["kg", "lb"], required=True)

    serve = sub.add_parser("serve")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)

    args = parser.parse_args(argv)

    if args.cmd == "convert":
        if args.unit == "kg":
            print(f"{args.weight} kg = {WeightConverter.kg_to_lb(args.weight)} lb")
        else:
            print(f"{args.weight} lb = {WeightConverter.lb_to_kg(args.weight)} kg")
        return

    settings = YamlConfig(args.settings).settings()
    logging.basicConfig(level=args.log_level or settings.log_level)

    if args.cmd == "serve":
        import uvicorn
        from rest_api import LiftAnalyticsAPI

        api = LiftAnalyticsAPI(args.csv, args.settings, today=args.today)
        uvicorn.run(api.app, host=args.host, port=args.port)
        return

    stats = load_statistics(args.csv, args.today)
    unit = getattr(args, "unit", None) or settings.preferred_unit
    if args.cmd == "summary":
        result = summary(stats, unit)
    elif args.cmd == "prs":
        result = stats.personal_records(args.lift, settings.e1rm_formula)
    elif args.cmd == "streak":
        result = ConsistencyService(stats).weekly_streak()
    elif args.cmd == "consistency":
        result = ConsistencyService(stats).consistency()
    elif args.cmd == "tonnage":
        result = tonnage(stats, unit, args.end_date)
    elif args.cmd == "highlight":
        result = highlight(stats, settings, args.seed)
    else:
        result = recap(stats, args.year, unit, args.seed)
    print(json.dumps(result, indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
