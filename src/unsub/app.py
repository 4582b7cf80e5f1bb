"""Flask app for unsubscribe status/recording and operator batch sends."""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify, request
from werkzeug.exceptions import HTTPException

from unsub.auth import IdentityVerifier
from unsub.batch import BatchSender, Mailer
from unsub.config import Settings
from unsub.email_sender import SendGridMailer
from unsub.errors import BadRequest, InternalError, Unauthorized, UnsubscribeError
from unsub.models import (
    ONE_CLICK,
    SendBatchRequest,
    StatusRequest,
    UnsubscribeRequest,
)
from unsub.service import UnsubscribeService
from unsub.store import UnsubscribeStore, get_client
from unsub.tokens import TokenCodec

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({"success": False, "error": message}), status


def parse_send_batch(data) -> SendBatchRequest:
    """Validate a send-emails JSON body into a SendBatchRequest."""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise BadRequest("Request body must be a JSON object")

    count = data.get("count", 0)
    if count is None:
        count = 0
    if not isinstance(count, int) or isinstance(count, bool):
        raise BadRequest("count must be an integer")

    subject = data.get("subject")
    if subject is not None and not isinstance(subject, str):
        raise BadRequest("subject must be a string")

    additional = data.get("additionalEmails") or []
    if not isinstance(additional, list):
        raise BadRequest("additionalEmails must be a list of strings")

    return SendBatchRequest(
        count=count,
        subject=subject or None,
        additional_emails=[a for a in additional if isinstance(a, str)],
    )


def create_app(
    settings: Settings | None = None,
    store: UnsubscribeStore | None = None,
    mailer: Mailer | None = None,
    identity_verifier: IdentityVerifier | None = None,
) -> Flask:
    """Build the app with its collaborators.

    Anything not passed in is constructed from ``settings`` (read from the
    environment when omitted).
    """
    if settings is None:
        settings = Settings.from_env()

    codec = TokenCodec(settings.jwt_secret)

    if store is None:
        settings.require("supabase_url", "supabase_key")
        store = UnsubscribeStore(
            get_client(settings.supabase_url, settings.supabase_key),
            table_name=settings.table_name,
        )
    if mailer is None:
        settings.require("sendgrid_api_key")
        mailer = SendGridMailer.from_api_key(settings.sendgrid_api_key)
    if identity_verifier is None and settings.auth_jwks_url and settings.auth_audience:
        identity_verifier = IdentityVerifier(
            settings.auth_jwks_url,
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
        )

    service = UnsubscribeService(codec, store)
    sender = BatchSender(settings, codec, mailer)

    app = Flask(__name__)
    app.extensions["unsub"] = {
        "settings": settings,
        "service": service,
        "sender": sender,
    }

    @app.before_request
    def preflight():
        if request.method == "OPTIONS":
            return Response(status=204)
        return None

    @app.after_request
    def add_cors_headers(response: Response) -> Response:
        for name, value in CORS_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    @app.errorhandler(UnsubscribeError)
    def handle_unsubscribe_error(e: UnsubscribeError):
        if e.status_code >= 500:
            logger.error("Request failed: %s", e)
        return _error(e.message, e.status_code)

    @app.errorhandler(Exception)
    def handle_unexpected(e: Exception):
        if isinstance(e, HTTPException):
            return _error(e.description or e.name, e.code or 500)
        logger.exception("Unhandled error")
        return handle_unsubscribe_error(InternalError(str(e) or None))

    @app.route("/unsubscribe", methods=["GET"])
    def check_status():
        result = service.check_status(StatusRequest(token=request.args.get("token")))
        return jsonify(result.to_dict())

    @app.route("/unsubscribe", methods=["POST"])
    def record_unsubscribe():
        record = service.record_unsubscribe(UnsubscribeRequest(
            token=request.args.get("token"),
            body=request.get_data(as_text=True),
            user_agent=request.headers.get("User-Agent"),
        ))
        # Mail clients posting one-click requests expect a bare 200
        if record.source == ONE_CLICK:
            return Response("OK", status=200, mimetype="text/plain")
        return jsonify({
            "success": True,
            "message": "Successfully unsubscribed",
            "email": record.email,
        })

    @app.route("/send-emails", methods=["POST"])
    def send_emails():
        if identity_verifier is None:
            raise Unauthorized("Authentication is not configured")
        claims = identity_verifier.authenticate(request.headers.get("Authorization"))
        logger.info("Batch send requested by %s", claims.get("email") or claims.get("sub"))

        if request.get_data():
            data = request.get_json(force=True, silent=True)
            if data is None:
                raise BadRequest("Request body must be valid JSON")
        else:
            data = {}
        result = sender.send_batch(parse_send_batch(data))
        return jsonify(result.to_dict())

    return app
