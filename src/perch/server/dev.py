"""Development server.

Starts a pounce ASGI server with the live perch Kernel object.
"""


def run_dev_server(
    app: object,
    host: str,
    port: int,
    *,
    reload: bool = False,
    app_path: str | None = None,
) -> None:
    """Serve *app* with pounce in single-worker mode.

    Pounce's ``run()`` takes an import string, but perch already has a
    live ``Kernel``, so ``pounce.Server`` is driven directly.

    Args:
        app: ASGI callable (perch Kernel instance).
        host: Bind host address.
        port: Bind port number.
        reload: Restart on file changes.
        app_path: Optional ``"module:attribute"`` import string, used by
            pounce to reimport the app on each reload cycle.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(host=host, port=port, workers=1, reload=reload)
    server = Server(config, app, app_path=app_path)
    server.run()
