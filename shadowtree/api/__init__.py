from .routes import TreeRouter, to_http_exception
