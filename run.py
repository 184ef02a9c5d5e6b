import uvicorn

from ledgerbook.core.config import settings

if __name__ == '__main__':
    reload = settings.APP_ENV == "local"
    print(f"Server running at: http://127.0.0.1:8000 ({settings.APP_ENV})")
    uvicorn.run("ledgerbook.main:app", host="127.0.0.1", port=8000, reload=reload)
