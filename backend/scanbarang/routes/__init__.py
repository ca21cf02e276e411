# Routes package init
"""
Scan Barang Backend — API Routes Package
==========================================

Route Inventory:
    - auth.py:     /api/auth/*          (accounts, public)
    - barang.py:   /api/barang          (items, multipart uploads)
    - scanner.py:  /api/scanner/{code}  (lookup by scanned code)
    - event.py:    /api/event/*         (events and scans)
    - health.py:   GET /health

Routes stay THIN: extract request data, resolve the owner key, call a
service, return its response model. Business rules live in services/.
"""
