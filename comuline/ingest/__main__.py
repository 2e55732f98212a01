"""
Comuline Sync Module Entry Point

Allows running the synchronization service via:
    python -m comuline.ingest [args]
"""

from .orchestrator import main

if __name__ == "__main__":
    main()
