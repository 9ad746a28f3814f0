from flask import Flask, request, jsonify
from flask_cors import CORS
from dealcompare.synthesizer import initialize_synthesizer
from dealcompare.constants import SEARCH_ERROR_MESSAGE
from dealcompare.errors import ComparisonError
from dealcompare.intake import comparison_request
from dealcompare.utils.cancellation import CancellationToken
from dealcompare.utils.logger import get_logger

app = Flask(__name__)

# Initialize CORS, allowing all origins.
CORS(app)

logger = get_logger("dealcompare.app")

# Configuration and synthesizer are built once when the app starts
config, synthesizer = initialize_synthesizer()

@app.route('/', methods=['GET'])
def home():
    return jsonify({"message": "Backend API is running"})

@app.route('/search', methods=['POST'])
def search():
    try:
        with comparison_request(request, upload_dir=config.UPLOAD_DIR) as comparison:
            # WSGI gives no signal when the client disconnects, so only the deadline
            # cancels this call; cancel() is never called from the route
            cancel_token = CancellationToken(timeout=config.MODEL_TIMEOUT_SECONDS)
            result = synthesizer.synthesize(
                comparison.product_name,
                comparison.image,
                comparison.vendors,
                cancel_token=cancel_token
            )
    except ComparisonError as e:
        logger.error(f"Search failed [{e.code}]: {e.message}", exc_info=True)
        return jsonify({"error": SEARCH_ERROR_MESSAGE}), 500
    except Exception as e:
        logger.error(f"Search failed unexpectedly: {e}", exc_info=True)
        return jsonify({"error": SEARCH_ERROR_MESSAGE}), 500

    logger.info(f"Search text: {comparison.product_name}")
    logger.info(f"Platforms: {comparison.vendors}")
    logger.info(f"Uploaded file: {comparison.image}")

    return jsonify(result.to_response())

if __name__ == "__main__":
    # Note: For development, Flask's built-in server is fine.
    # For production, use a proper WSGI server like Gunicorn or uWSGI.
    app.run(host=config.HOST, port=config.PORT, threaded=True)
