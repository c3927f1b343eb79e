"""
Citizen records: CRUD, filtered search, CSV export/import.

Layout:
- `router.py` HTTP endpoints
- `service.py` orchestration and error translation
- `repository.py` raw SQL
- `filters.py` search predicate/paging
- `csv_codec.py` CSV format
"""
