"""
WSGI Entry Point for Production Deployment

Usage with Gunicorn:
    gunicorn --config gunicorn_config.py wsgi:app
"""
import os

# Set production environment if not already set
if 'FLASK_ENV' not in os.environ:
    os.environ['FLASK_ENV'] = 'production'

from attendtrack import create_app, init_db

# Create the application instance
app = create_app()

# Tables are normally created by `flask db upgrade`; create_all only fills gaps
init_db(app)

# This is the WSGI application object
application = app

if __name__ == "__main__":
    # In production, use a WSGI server like Gunicorn
    app.run(debug=True, host='0.0.0.0', port=5000)
