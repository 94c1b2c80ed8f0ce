"""
Local Authority Services Layer

Business logic that orchestrates gating, caching, repository
operations and background execution. Import the modules directly:

    from src.services import local_authority, local_scan
    from src.services.errors import ScanServiceError
"""
