from pilcrow_http.web.core import App
from pilcrow_http.web.metrics import Metrics, metrics_middleware
from pilcrow_http.web.request import ServerRequest
from pilcrow_http.web.response import ServerResponse


def register(app: App) -> Metrics:
    m = Metrics()
    app.use(metrics_middleware(m))

    @app.route("GET", "/metrics")
    def metrics(request: ServerRequest, response: ServerResponse) -> None:
        response.headers.set("Content-Type", "text/plain; version=0.0.4")
        response.write_head(200).write_string(m.render())

    return m
