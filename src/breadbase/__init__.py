"""BreadBase - schema-to-CRUD (BREAD) engine.

Introspects and alters a live relational schema, and records how each
table is presented as a browse/read/edit/add/delete resource.
"""

__version__ = "0.1.0"
