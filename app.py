import atexit
import logging
import os

from stock_tracker import create_app, dispose_store

logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")

app = create_app()
atexit.register(dispose_store, app)

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    app.run(host="0.0.0.0", port=port, debug=os.environ.get("FLASK_DEBUG") == "1")
