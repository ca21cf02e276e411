# Services package init
"""
Scan Barang Backend — Services Layer
======================================

What:  Business logic between routes (HTTP) and the database, plus adapters
       for the external collaborators.

Service Inventory:
    - IdentityProvider (abstract): account and token contract
    - FirebaseIdentityService: firebase-admin SDK + Identity Toolkit REST
    - MailService: HTML account emails over aiosmtplib
    - FileService: upload validation, staging, finalize, cleanup
    - label_service: QR label composer (qrcode + Pillow)
    - AuthService: register / verify / login / reset workflows
    - ItemService: items, brands, scanner lookup
    - EventService: events, scans, completion

Each is a stateless singleton; the database session and the caller's owner
key are passed into every call.
"""
