# /run.py
import os

# Load environment variables from .env file
from dotenv import load_dotenv
load_dotenv()

# Now, import the app factory
from medibot import create_app
from medibot.extensions import socketio

# Create the app instance
app = create_app(os.getenv('FLASK_CONFIG', 'default'))

if __name__ == '__main__':
    # Socket.IO runs in threading mode, so the Flask dev server carries both HTTP and websockets
    print("Starting MediBot server...")
    socketio.run(
        app,
        host=os.getenv('HOST', '127.0.0.1'),
        port=int(os.getenv('PORT', 5000)),
        debug=app.config.get('DEBUG', False),
        allow_unsafe_werkzeug=True
    )
