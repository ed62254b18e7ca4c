from .files import NodeBuilder, sanitize_name, format_size, format_time
from .render import render_tree, render_search_results
