import os

# --- GCP ---
GCP_PROJECT_NUMBER = os.environ.get("GCP_PROJECT_NUMBER", "4042672389")
AUTH_SECRET_NAME = os.environ.get(
    "AUTH_SECRET_NAME",
    f"projects/{GCP_PROJECT_NUMBER}/secrets/blog-auth-key/versions/latest"
)
# When set, Secret Manager is skipped entirely (local runs / tests)
AUTH_SECRET_KEY = os.environ.get("AUTH_SECRET_KEY")

# --- Auth ---
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.environ.get("ACCESS_TOKEN_EXPIRE_MINUTES", "150"))
ALLOWED_HOSTS = [
    host.strip()
    for host in os.environ.get("ALLOWED_HOSTS", "musings-mr.net,*.musings-mr.net,localhost,127.0.0.1").split(",")
    if host.strip()
]

# --- Firestore ---
USERS_COLLECTION = "users"
COMMENTS_COLLECTION = "comments"

# --- Comments ---
MAX_COMMENT_TEXT_LENGTH = int(os.environ.get("MAX_COMMENT_TEXT_LENGTH", "1000"))
