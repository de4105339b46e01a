from __future__ import annotations

import logging

from flask import Flask

from liveedit.config import LiveEditConfig
from liveedit.files import DirectoryFileManager
from liveedit.server.handler import DesignModeHandler


def create_app(
    handler: DesignModeHandler | None = None,
    config: LiveEditConfig | None = None,
) -> Flask:
    """Create the backend app. Without a handler, serve ``config.project_root``."""
    config = config or (handler.config if handler is not None else LiveEditConfig())
    app = Flask(__name__)
    app.config["LIVEEDIT"] = config
    logging.getLogger("liveedit").setLevel(config.log_level)

    if handler is None:
        files = DirectoryFileManager(config.project_root, config.source_extensions)
        handler = DesignModeHandler(files, config)
    app.extensions["design_mode_handler"] = handler

    from liveedit.server.routes import design_mode_bp

    app.register_blueprint(design_mode_bp, url_prefix="/api/design-mode")
    return app
