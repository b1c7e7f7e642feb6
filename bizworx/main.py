import uvicorn
#entry point to run FastAPI app (starts the job scheduler on startup)
if __name__ == "__main__":
    uvicorn.run(
        "bizworx.webapp:app",
        host="0.0.0.0",
        port=8000,
        reload=False,
    )
