# adapters/web/share_blueprint.py
# Public routes: landing page, download trigger, favicon.

import logging
import re

from flask import Blueprint, Response, abort, current_app, render_template_string, request, send_file, url_for

from adapters.web.landing_page import FAVICON_ICO, LANDING_HTML, describe_validity
from onetime.errors import NotFound
from onetime.lifecycle import ShareService
from onetime.tokens import MAX_TOKEN_LENGTH

logger = logging.getLogger("onetime.web")

share = Blueprint("share", __name__)

# Operator log tag per not-found cause; the requester always sees the same 404
NOT_FOUND_TAGS: dict[str, str] = {
    NotFound.MISSING_TOKEN: "404",
    NotFound.MISSING_FILE:  "NOFILE",
    NotFound.EXPIRED:       "EXPIRED",
}

_TOKEN_RE = re.compile(rf"^[0-9a-z]{{1,{MAX_TOKEN_LENGTH}}}$")


def _service() -> ShareService:
    return current_app.extensions["share_service"]


def _not_found(exc: NotFound):
    logger.info("%s ip=%s path=%s", NOT_FOUND_TAGS.get(exc.reason, "404"), request.remote_addr, request.path)
    abort(404)


def _check_token(token: str) -> None:
    """Reject anything that cannot be a generated token before touching the store."""
    if not _TOKEN_RE.match(token):
        _not_found(NotFound(token, NotFound.MISSING_TOKEN))


@share.route("/favicon.ico", methods=["GET"])
def favicon():
    return Response(FAVICON_ICO, mimetype="image/x-icon")


@share.route("/<token>", methods=["GET"])
def landing(token: str):
    """
    GET /<token>
    Shows name, size and, once activated, the validity deadline.
    Never activates the token.
    """
    _check_token(token)
    try:
        view = _service().landing(token)
    except NotFound as exc:
        return _not_found(exc)

    logger.info("DISP ip=%s path=%s", request.remote_addr, request.path)
    return render_template_string(
        LANDING_HTML,
        view=view,
        download_url=url_for("share.download", token=token),
        validity=describe_validity(int(_service().validity.total_seconds())),
    )


@share.route("/d/<token>", methods=["GET"])
def download(token: str):
    """
    GET /d/<token>
    Streams the file as an attachment. The first GET activates the token;
    HEAD reports the same headers without activating it.
    """
    _check_token(token)
    try:
        decision = _service().download(token, activate=request.method != "HEAD")
    except NotFound as exc:
        return _not_found(exc)

    try:
        response = send_file(
            decision.path,
            as_attachment=True,
            download_name=decision.display_name,
            conditional=True,
        )
    except FileNotFoundError:
        # Removed between the decision and the open
        return _not_found(NotFound(token, NotFound.MISSING_FILE))

    remote_addr = request.remote_addr
    logger.info(
        "%s ip=%s path=%s activated=%s",
        "HEAD" if request.method == "HEAD" else "SEND",
        remote_addr,
        request.path,
        decision.activated_now,
    )
    response.call_on_close(lambda: logger.info("DONE ip=%s token=%s", remote_addr, token))
    return response
