"""Simple server runner."""
import uvicorn

if __name__ == "__main__":
    print("=" * 50)
    print("  Starting Drug Stock Backend")
    print("=" * 50)
    uvicorn.run(
        "drugstock.main:app",
        host="127.0.0.1",
        port=8000,
        log_level="info",
    )
