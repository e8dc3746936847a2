import os
from dotenv import load_dotenv

# Load .env from project root
load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./flowsync.db")

# Rendering collaborator (Kroki accepts Mermaid source and returns SVG)
KROKI_URL = os.getenv("KROKI_URL", "https://kroki.io")
RENDER_TIMEOUT = int(os.getenv("RENDER_TIMEOUT", "30"))

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]

DB_CONNECT_RETRIES = int(os.getenv("DB_CONNECT_RETRIES", "5"))
DB_CONNECT_DELAY = float(os.getenv("DB_CONNECT_DELAY", "2"))
