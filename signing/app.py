import logging
import os
from typing import Callable, Optional

from flask import Flask, Response, redirect, request
from flask_cors import CORS

from signing.config import Settings, load_settings
from signing.errors import GENERIC_ERROR_MESSAGE, SigningError
from signing.service_docusign import DocuSignProvider
from signing.service_esign import SignerIdentity, start_esign


logger = logging.getLogger(__name__)


def _error_response(message: str) -> Response:
	return Response(message, status=500, mimetype="text/plain")


def create_app(provider_factory: Optional[Callable[[Settings], object]] = None) -> Flask:
	app = Flask(__name__)
	CORS(app, resources={r"/*": {"origins": os.getenv("ALLOWED_ORIGINS", "*")}})

	make_provider = provider_factory or DocuSignProvider

	@app.get("/health")
	def health():
		return {"ok": True}

	@app.get("/api/start-signing")
	def start_signing():
		signer = SignerIdentity.from_query(request.args)
		try:
			# settings are read per request, before any provider call
			settings = load_settings()
			session = start_esign(settings, signer, make_provider(settings))
		except SigningError as exc:
			logger.error("Embedded signing failed: %s (detail: %s)", exc.message, exc.detail)
			return _error_response(exc.message or GENERIC_ERROR_MESSAGE)
		except Exception as exc:
			logger.error("Embedded signing failed: %s", exc, exc_info=True)
			return _error_response(GENERIC_ERROR_MESSAGE)
		return redirect(session.signing_url, code=302)

	return app


app = create_app()
