"""
Graft Core Module
==================

The analysis engine (:mod:`graft.core.engine`) and the result models
(:mod:`graft.core.models`) it produces.  Import them from their modules;
the parsers depend on the models, so this package stays import-free.
"""
