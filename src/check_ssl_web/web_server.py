# src/check_ssl_web/web_server.py

"""
Flask application: a single page that looks up the certificate of the domain
given in the `domain` query parameter, plus an error handler that renders
HTTP errors through the same templates.
"""

import logging
from typing import Any, Callable, Dict, Optional

from flask import Flask, Response, current_app, render_template, request
from jinja2 import StrictUndefined, TemplateError
from werkzeug.exceptions import HTTPException, InternalServerError

from check_ssl_web import __version__
from check_ssl_web.cert_lookup import (
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    CertificateInfo,
    CertificateLookupError,
    lookup,
)

logger = logging.getLogger("checkssl.web")

INDEX_TEMPLATE = "index.html"
CERT_TEMPLATE = "ssl.html"
ERROR_TEMPLATE = "error.html"
LAYOUT_TEMPLATE = "base.html"
TEMPLATES = (LAYOUT_TEMPLATE, INDEX_TEMPLATE, CERT_TEMPLATE, ERROR_TEMPLATE)

TEMPLATE_ERROR = "Template error"
ERROR_MESSAGES = {404: "Page not found"}

DEFAULT_CONFIG = {
    "LOOKUP_PORT": DEFAULT_PORT,
    "LOOKUP_TIMEOUT": DEFAULT_TIMEOUT,
    "LOOKUP_MODE": "full",
    "TEMPLATES_AUTO_RELOAD": False,
}

LookupFunc = Callable[..., CertificateInfo]


def render_page(template_name: str, **context: Any) -> str:
    """Render one of the application templates. Raises jinja2.TemplateError on failure."""
    return render_template(template_name, **context)


def run_lookup(domain: str) -> CertificateInfo:
    """Look up a domain with the settings of the current application."""
    config = current_app.config
    lookup_func = current_app.extensions["checkssl_lookup"]
    return lookup_func(
        domain,
        port=config["LOOKUP_PORT"],
        timeout=config["LOOKUP_TIMEOUT"],
        fetch_intermediates=config["LOOKUP_MODE"] == "full",
    )


def index():
    domain = request.args.get("domain")
    try:
        if domain is None:
            body = render_page(INDEX_TEMPLATE)
        else:
            try:
                cert = run_lookup(domain)
            except CertificateLookupError as e:
                logger.error(f"Lookup failed for '{domain}': {e.message}")
                body = render_page(ERROR_TEMPLATE, domain=domain, error=e.message)
            else:
                body = render_page(CERT_TEMPLATE, domain=domain, cert=cert)
    except TemplateError as e:
        logger.exception(f"Failed to render page: {e}")
        raise InternalServerError(TEMPLATE_ERROR)
    return Response(body, status=200, mimetype="text/html")


def error_response(status_code: int, message: str) -> Response:
    """
    Render an HTTP error through the error template.

    Falls back to a plain text body carrying the status code and message when
    the template cannot be rendered.
    """
    try:
        body = render_page(ERROR_TEMPLATE, error=message, status_code=status_code)
    except Exception:
        logger.exception(f"Could not render error page for status {status_code}, using plain text")
        return Response(f"{status_code} {message}", status=status_code, mimetype="text/plain")
    return Response(body, status=status_code, mimetype="text/html")


def handle_http_error(error: HTTPException) -> Response:
    status_code = error.code or 500
    message = ERROR_MESSAGES.get(status_code) or error.description or error.name
    logger.warning(f"{status_code} on {request.method} {request.path}: {message}")
    return error_response(status_code, message)


def log_request(response: Response) -> Response:
    logger.info(f'{request.remote_addr} "{request.method} {request.full_path.rstrip("?")}" {response.status_code}')
    return response


def template_globals() -> Dict[str, Any]:
    return {"version": __version__}


def load_templates(app: Flask) -> None:
    """
    Compile the application templates once. Missing or malformed templates
    raise here so that the server never starts half configured.
    """
    for name in TEMPLATES:
        app.jinja_env.get_template(name)
    logger.debug(f"Loaded templates {', '.join(TEMPLATES)} from {app.template_folder}")


def create_app(config: Optional[Dict[str, Any]] = None,
               lookup_func: Optional[LookupFunc] = None,
               template_folder: str = "templates") -> Flask:
    """
    Build the Flask application.

    Parameters:
        config (dict): overrides for DEFAULT_CONFIG and any Flask setting.
        lookup_func (callable): replaces cert_lookup.lookup.
        template_folder (str): template directory, relative to the package or absolute.

    Raises:
        jinja2.TemplateError: when a template is missing or malformed.
    """
    app = Flask(__name__, template_folder=template_folder)
    app.config.update(DEFAULT_CONFIG)
    if config:
        app.config.update(config)
    app.extensions["checkssl_lookup"] = lookup_func or lookup

    app.jinja_env.undefined = StrictUndefined
    app.jinja_env.auto_reload = False
    load_templates(app)

    app.add_url_rule("/", "index", index, methods=["GET"])
    app.register_error_handler(HTTPException, handle_http_error)
    app.context_processor(template_globals)
    app.after_request(log_request)
    return app


def run_server(port: int, host: str = "127.0.0.1", config: Optional[Dict[str, Any]] = None) -> None:
    """Create the application and serve it until interrupted."""
    app = create_app(config)
    logger.info(f"Starting Flask server on http://{host}:{port}")
    app.run(host=host, port=port, debug=False, threaded=True)
