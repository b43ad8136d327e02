from flask_socketio import SocketIO

# Bound to the app in create_app via init_app.
socketio = SocketIO()
