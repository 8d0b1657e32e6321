import logging

import uvicorn
from fastapi import FastAPI

from api.router import router

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Donor Eligibility Engine",
    description="Blood donor eligibility and deferral determination",
    version="1.0.0",
)

app.include_router(router)

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=True,
    )
