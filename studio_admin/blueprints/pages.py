"""Minimal page routes for the admin shell.

The dashboard UI itself is served separately; these routes exist so the
page gate has concrete targets to protect and redirect to.
"""
from flask import Blueprint, redirect, request

bp = Blueprint('pages', __name__)


@bp.route('/')
def index():
    return redirect('/dashboard')


@bp.route('/login')
def login_page():
    target = request.args.get('from', '/dashboard')
    return f"Sign in to continue to {target}", 200, {'Content-Type': 'text/plain; charset=utf-8'}


@bp.route('/dashboard')
@bp.route('/dashboard/<path:subpath>')
def dashboard_page(subpath=None):
    return "Studio admin dashboard", 200, {'Content-Type': 'text/plain; charset=utf-8'}


@bp.route('/access-denied')
def access_denied_page():
    return "Admin access required", 403, {'Content-Type': 'text/plain; charset=utf-8'}
