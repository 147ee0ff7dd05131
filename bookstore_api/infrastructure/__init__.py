"""Infrastructure Layer: concrete adapters to the outside world.

Configuration sources, logging handlers, the HTTP transport and the
eventual-consistency poller live here.
"""
