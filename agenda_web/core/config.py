import os

from dotenv import load_dotenv

load_dotenv()


# =========================
# API REMOTA
# =========================

API_BASE_URL = os.getenv("API_BASE_URL", "http://localhost:3333")
API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "15"))

# tempo em que uma resposta GET em cache é considerada fresca
CACHE_STALE_SECONDS = float(os.getenv("CACHE_STALE_SECONDS", "30"))
CACHE_MAX_ENTRIES = int(os.getenv("CACHE_MAX_ENTRIES", "1000"))

PAGE_LIMIT = int(os.getenv("PAGE_LIMIT", "8"))
USERS_PAGE_LIMIT = 7


# =========================
# SESSÃO
# =========================

SECRET_KEY = os.getenv("SECRET_KEY", "dev-change-me")
ALGORITHM = "HS256"
SESSION_EXPIRE_MINUTES = int(os.getenv("SESSION_EXPIRE_MINUTES", "60"))
SESSION_COOKIE = "agenda_session"
# sessão assinada (itsdangerous) que carrega os avisos entre redirecionamentos
FLASH_COOKIE = "agenda_flash"
COOKIE_SECURE = os.getenv("COOKIE_SECURE", "false").lower() == "true"


# =========================
# CEP
# =========================

CEP_API_URL = os.getenv("CEP_API_URL", "https://viacep.com.br/ws")
CEP_DEBOUNCE_MS = int(os.getenv("CEP_DEBOUNCE_MS", "500"))


# =========================
# E-MAIL
# =========================

MAIL_HOST = os.getenv("MAIL_HOST", "smtp.gmail.com")
MAIL_PORT = int(os.getenv("MAIL_PORT", "465"))
MAIL_USER = os.getenv("MAIL_USER", "")
MAIL_PASS = os.getenv("MAIL_PASS", "")
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "")
