"""sitedash — edit and publish a website's header, navigation, and footer."""

__version__ = "0.1.0"
