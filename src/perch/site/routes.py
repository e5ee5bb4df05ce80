"""Route table for the demo site. Order matters: first match wins."""

from perch.routing.route import Route

ROUTES: tuple[Route, ...] = (
    Route("GET", "/", "home.index", name="home"),
    Route("GET", "/about", "home.about", name="about"),
    Route("GET", "/hello/{name}", "home.hello", name="hello"),
    Route("GET", r"/user/{id:\d+}", "home.user_detail", name="user_detail"),
    Route("GET", "/admin", "home.admin", middleware=("auth",), name="admin"),
    Route(
        "GET",
        "/secret-report",
        "home.secret_report",
        middleware=("auth", "request_log"),
        name="secret_report",
    ),
)
