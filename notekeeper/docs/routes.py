# notekeeper/docs/routes.py
from flask import Blueprint, current_app, jsonify, make_response
from .spec import build_spec

bp = Blueprint("docs", __name__)

_SWAGGER_PAGE = """<!doctype html>
<html>
  <head>
    <meta charset="utf-8"/>
    <title>{title}</title>
    <link rel="stylesheet" href="/static/swagger/swagger-ui.css" />
  </head>
  <body>
    <div id="swagger" data-spec-url="/openapi.json"></div>
    <script src="/static/swagger/swagger-ui-bundle.js"></script>
    <script src="/static/swagger/docs.js"></script>
    <noscript>Enable JavaScript to view the API docs.</noscript>
  </body>
</html>"""

def _spec():
    # construit une fois par app
    spec = current_app.extensions.get("openapi_spec")
    if spec is None:
        spec = current_app.extensions["openapi_spec"] = build_spec()
    return spec

@bp.get("/openapi.json")
def openapi_json():
    return jsonify(_spec())

@bp.get("/docs")
def swagger_ui():
    title = f"{_spec()['info']['title']} — Docs"
    return make_response(_SWAGGER_PAGE.format(title=title), 200)
