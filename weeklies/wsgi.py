from __future__ import annotations

import os

from whitenoise import WhiteNoise

from weeklies.app_factory import create_app

# Expose a module-level WSGI application for Gunicorn
flask_app = create_app()

# WhiteNoise serves /statics in production; Flask's static route is the fallback
static_root = os.path.join(flask_app.weeklies_config.data_dir, "statics")  # type: ignore[attr-defined]
app = WhiteNoise(flask_app, root=static_root, prefix="statics/")
