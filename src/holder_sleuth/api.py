"""HTTP trigger for the ingestion loop."""

import logging
import threading
from typing import Any, Callable, Dict

from fastapi import FastAPI, HTTPException

from holder_sleuth.core.exceptions import HolderSleuthError
from holder_sleuth.pipeline.orchestrator import IngestionOrchestrator
from holder_sleuth.utils.logging import setup_logging

logger = logging.getLogger("holder_sleuth.api")

SUCCESS_MESSAGE = "Logs processed successfully."


def create_app(
    orchestrator_factory: Callable[[], IngestionOrchestrator] = IngestionOrchestrator.from_settings,
) -> FastAPI:
    app = FastAPI(title="holder_sleuth")
    # One ingestion run at a time; the pipeline itself has no locking.
    run_lock = threading.Lock()

    @app.get("/process-logs")
    def process_logs() -> Dict[str, Any]:
        if not run_lock.acquire(blocking=False):
            raise HTTPException(status_code=409, detail="Log processing is already running.")
        try:
            result = orchestrator_factory().run()
        except HolderSleuthError as e:
            logger.error(f"Log processing failed: {e}")
            raise HTTPException(status_code=500, detail=str(e))
        except Exception as e:
            logger.error(f"Unexpected error while processing logs: {e}")
            raise HTTPException(status_code=500, detail=str(e)) from e
        finally:
            run_lock.release()

        return {"message": SUCCESS_MESSAGE, **result.to_dict()}

    return app


setup_logging()
app = create_app()
