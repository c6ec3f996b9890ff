import logging
import os
from typing import Any, Dict, Optional
from uuid import uuid4

from flask import Flask, jsonify, redirect, render_template, request, session, url_for

from emi_calc import config
from emi_calc.advisor import (
    LoanAdvisor,
    advisor_from_env,
    safe_compare,
    safe_summarize,
    shorter_tenure_alternative,
)
from emi_calc.exceptions import InputValidationError
from emi_calc.history import entry_from_result, replay
from emi_calc.main import build_request_from_options
from emi_calc.utils import format_inr, format_number
from emi_calc_web.ledger_store import create_store_from_env

logger = logging.getLogger(__name__)

DEFAULT_FORM = {
    "loan_type": "standard",
    "principal": "100000",
    "rate": "7.5",
    "tenure": "10",
    "course_duration": "4",
    "moratorium": "1",
    "subsidy": "",
}


def _is_checked(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in {"1", "true", "on", "yes"}


def _request_from_payload(payload):
    return build_request_from_options(
        payload.get("principal"),
        payload.get("rate"),
        payload.get("tenure"),
        payload.get("loan_type") or "standard",
        payload.get("course_duration"),
        _is_checked(payload.get("moratorium")),
        _is_checked(payload.get("subsidy")),
    )


def _json_payload() -> Dict[str, Any]:
    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def create_app(test_config: Optional[Dict[str, Any]] = None, advisor: Optional[LoanAdvisor] = None) -> Flask:
    app = Flask(__name__)
    app.config["ASSET_VERSION"] = os.environ.get("ASSET_VERSION", "1")
    app.config["SECRET_KEY"] = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    app.config["LEDGER_DATABASE_URL"] = config.ledger_database_url()
    if test_config:
        app.config.update(test_config)

    ledger_store = create_store_from_env(app.config["LEDGER_DATABASE_URL"])
    loan_advisor = advisor or advisor_from_env()
    app.jinja_env.filters["inr"] = format_inr
    app.jinja_env.filters["number"] = format_number

    def _ensure_user_token() -> str:
        token = session.get("user_token")
        if not token:
            token = uuid4().hex
            session["user_token"] = token
            session.modified = True
        return token

    def _render(form, result=None, errors=None, notice=None):
        user_token = _ensure_user_token()
        return render_template(
            "index.html",
            form=form,
            result=result,
            errors=errors or {},
            notice=notice,
            ledger=ledger_store.list_entries(user_token),
            asset_version=app.config["ASSET_VERSION"],
        )

    @app.route("/", methods=["GET", "POST"])
    def index():
        if request.method == "GET":
            return _render(dict(DEFAULT_FORM))

        form = request.form.to_dict()
        user_token = _ensure_user_token()
        try:
            result = _request_from_payload(form).compute()
        except InputValidationError as exc:
            return _render(form, errors=exc.errors), 400
        ledger_store.add_entry(user_token, entry_from_result(result))
        return _render(form, result=result)

    @app.post("/ledger/<entry_id>/load")
    def load_ledger_entry(entry_id: str):
        user_token = _ensure_user_token()
        entry = ledger_store.get_entry(user_token, entry_id)
        if entry is None:
            return redirect(url_for("index"))
        # Ledger entries carry no loan type; they always reload as standard loans
        result = replay(entry)
        form = dict(
            DEFAULT_FORM,
            principal=format_number(entry.principal),
            rate=format_number(entry.rate),
            tenure=format_number(entry.tenure_years),
        )
        return _render(form, result=result, notice=f"Loaded ledger entry from {entry.date}")

    @app.post("/ledger/clear")
    def clear_ledger():
        ledger_store.clear_entries(session.get("user_token"))
        return redirect(url_for("index"))

    @app.post("/api/schedule")
    def api_schedule():
        try:
            result = _request_from_payload(_json_payload()).compute()
        except InputValidationError as exc:
            return jsonify({"errors": exc.errors}), 400
        return jsonify(result.to_dict())

    @app.post("/api/analysis")
    def api_analysis():
        try:
            result = _request_from_payload(_json_payload()).compute()
        except InputValidationError as exc:
            return jsonify({"errors": exc.errors}), 400
        return jsonify({"schedule": result.to_dict(), "text": safe_summarize(loan_advisor, result)})

    @app.post("/api/compare-tenure")
    def api_compare_tenure():
        try:
            result = _request_from_payload(_json_payload()).compute()
        except InputValidationError as exc:
            return jsonify({"errors": exc.errors}), 400
        shorter = shorter_tenure_alternative(result)
        if shorter is None:
            message = f"Tenure must exceed {config.COMPARISON_TENURE_REDUCTION_YEARS} years to compare"
            return jsonify({"errors": {"tenure": message}}), 400
        return jsonify(
            {
                "current": result.to_dict(),
                "alternative": shorter.to_dict(),
                "text": safe_compare(loan_advisor, result, shorter),
            }
        )

    return app


if __name__ == "__main__":
    config.configure_logging()
    print("Starting EMI calculator web app...")
    create_app().run(host="0.0.0.0", port=8710, debug=True)
