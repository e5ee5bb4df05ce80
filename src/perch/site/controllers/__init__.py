"""Controllers for the demo site."""

from perch.site.controllers.home import HomeController

__all__ = ["HomeController"]
