"""catalog/ -- Films, actors and their association.

store.py is the only module that touches SQL. query.py (read side) and
mutator.py (write side) sit on top of it and are what the HTTP layer calls.

Layer rule: catalog/ imports only stdlib, third-party libraries, and core/.
It does NOT import from api/ or auth/.
"""
