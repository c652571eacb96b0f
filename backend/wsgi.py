# backend/wsgi.py
from outlet_pos import create_app

app = create_app()
