"""
AWS Lambda entry point.

API Gateway events are translated to ASGI requests against the same app the
standalone server runs. The pool is created once per container, at cold
start, and reused by every invocation the container serves.
"""

from mangum import Mangum

from hello_db.server import app, start_services

start_services(app)

handler = Mangum(app, lifespan='off')
