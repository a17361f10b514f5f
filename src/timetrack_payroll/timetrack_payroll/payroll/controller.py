from __future__ import annotations

import csv
import io

from flask import Flask, jsonify, request

from ..common.datetime_utils import parse_iso_date
from ..common.web import current_actor, login_required, query_user_id
from ..container import Container
from ..core.enums import GroupBy
from ..core.exceptions import ValidationError
from .aggregation import round_hours, round_money


def _months_arg():
    raw = (request.args.get("months") or "").strip()
    if not raw:
        return None
    try:
        months = int(raw)
    except ValueError:
        raise ValidationError("months must be a whole number")
    if not 1 <= months <= 120:
        raise ValidationError("months must be between 1 and 120")
    return months


def register(app: Flask, container: Container) -> None:
    auth = login_required(container)
    stats = container.statistics_service

    @app.route("/api/statistics", methods=["GET"], endpoint="period_statistics")
    @auth
    def period_statistics():
        result = stats.period_statistics(
            actor=current_actor(),
            user_id=query_user_id(),
            period=request.args.get("period") or "today",
            start_date=request.args.get("startDate"),
            end_date=request.args.get("endDate"),
        )
        return jsonify(result.to_dict())

    @app.route("/api/statistics/monthly", methods=["GET"], endpoint="monthly_statistics")
    @auth
    def monthly_statistics():
        report = stats.monthly_report(actor=current_actor(), scope=query_user_id(), months=_months_arg())
        return jsonify(report.to_dicts())

    @app.route("/api/statistics/summary", methods=["GET"], endpoint="summary_statistics")
    @auth
    def summary_statistics():
        start = request.args.get("startDate")
        end = request.args.get("endDate")
        try:
            group_by = GroupBy((request.args.get("groupBy") or "none").lower())
        except ValueError:
            raise ValidationError("groupBy must be one of none, day, month, user")

        summary = stats.summarize(
            actor=current_actor(),
            scope=query_user_id(),
            start_date=parse_iso_date(start) if start else None,
            end_date=parse_iso_date(end) if end else None,
            group_by=group_by,
        )
        return jsonify(
            {
                "groupBy": summary.group_by.value,
                "totals": summary.totals.to_dict(),
                "buckets": [
                    {"key": key.isoformat() if hasattr(key, "isoformat") else key, **totals.to_dict()}
                    for key, totals in summary.buckets.items()
                ],
                "users": {str(uid): u.totals.to_dict() for uid, u in summary.users.items()},
            }
        )

    @app.route("/api/analytics/monthly-earnings", methods=["GET"], endpoint="monthly_earnings")
    @auth
    def monthly_earnings():
        report = stats.monthly_report(actor=current_actor(), scope=query_user_id(), months=_months_arg())
        return jsonify({"months": report.earnings_dicts(), "statistics": report.statistics.to_dict()})

    @app.route("/api/statistics/monthly.csv", methods=["GET"], endpoint="export_monthly_statistics")
    @auth
    def export_monthly_statistics():
        report = stats.monthly_report(actor=current_actor(), scope=query_user_id(), months=_months_arg())

        out = io.StringIO()
        writer = csv.DictWriter(
            out,
            fieldnames=[
                "month",
                "user_id",
                "name",
                "total_hours",
                "paid_minutes",
                "unpaid_minutes",
                "total_tracks",
                "paid_tracks",
                "total_earnings",
                "paid_earnings",
                "unpaid_earnings",
            ],
        )
        writer.writeheader()
        for bucket in report.months:
            for uid, totals in bucket.users.items():
                user = report.users.get(uid)
                writer.writerow(
                    {
                        "month": bucket.key,
                        "user_id": uid,
                        "name": user.name if user else "",
                        "total_hours": round_hours(totals.total_minutes),
                        "paid_minutes": totals.paid_minutes,
                        "unpaid_minutes": totals.unpaid_minutes,
                        "total_tracks": totals.total_tracks,
                        "paid_tracks": totals.paid_tracks,
                        "total_earnings": round_money(totals.total_earnings),
                        "paid_earnings": round_money(totals.paid_earnings),
                        "unpaid_earnings": round_money(totals.unpaid_earnings),
                    }
                )

        csv_bytes = out.getvalue().encode("utf-8-sig")
        return app.response_class(
            csv_bytes,
            mimetype="text/csv",
            headers={"Content-Disposition": "attachment; filename=monthly_statistics.csv"},
        )
