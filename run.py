#!/usr/bin/env python3
"""
Startup script for the tattoo studio admin API
"""
from studio_admin.app import create_app

if __name__ == '__main__':
    app = create_app()
    app.run(debug=app.config['ENVIRONMENT'] == 'development', host='0.0.0.0', port=5000)
