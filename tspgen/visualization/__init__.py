from tspgen.visualization.plotting import plot_instance
from tspgen.visualization.renderer import RouteSummary, format_duration, parse_route, render, route_summary

__all__ = ["RouteSummary", "format_duration", "parse_route", "plot_instance", "render", "route_summary"]
