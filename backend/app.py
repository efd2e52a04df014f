import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from flask_cors import CORS

# Load .env from project root (parent directory)
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

app = Flask(__name__)

# CORS configuration for the dashboard dev server
CORS(
    app,
    origins=os.getenv("CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173").split(","),
)

app.json.ensure_ascii = False

# ============================================================================
# REGISTER BLUEPRINTS
# ============================================================================

from routes.health import health_bp
from routes.receipts import receipts_bp

app.register_blueprint(health_bp)
app.register_blueprint(receipts_bp)

# ============================================================================
# APPLICATION STARTUP
# ============================================================================

if __name__ == "__main__":
    port = int(os.getenv("PORT", "5000"))

    print("\n" + "=" * 50)
    print("In-app Purchase Receipt Backend Starting...")
    print("=" * 50)
    print(f"API available at: http://localhost:{port}")
    print(f"Test health: http://localhost:{port}/api/health")
    print("=" * 50 + "\n")

    app.run(debug=False, use_reloader=False, host="0.0.0.0", port=port)
