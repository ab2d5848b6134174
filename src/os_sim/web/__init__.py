"""JSON web API for the simulator.

This package provides a Flask application that exposes the kernel's
command and query surface over HTTP, so a browser front end can drive
the simulator and draw its state.  It is an **optional** extra —
install with::

    pip install os-sim[web]

The ``create_app`` factory in ``app.py`` boots a kernel (or wraps one
you pass in), starts its scheduling clock, and serves JSON endpoints
under ``/api``.
"""
