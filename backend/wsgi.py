# backend/wsgi.py
from caisse import create_app

app = create_app()
