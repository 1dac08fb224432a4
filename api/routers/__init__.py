"""
Route handlers grouped by domain.

Each module exposes handlers plus the Route records that wire them into the
Router built by api.app.
"""
