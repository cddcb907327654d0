"""Use-cases: AJAX reply formatting and deferred dispatch."""
