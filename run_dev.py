#!/usr/bin/env python3
"""
Photo Booth - Development Runner
Run this script to start the development server
"""

import os
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

os.environ.setdefault('FLASK_APP', 'photobooth')
os.environ.setdefault('FLASK_ENV', 'development')

try:
    from photobooth import create_app

    def main():
        """Main entry point"""
        print("=" * 60)
        print("Photo Booth - Development Server")
        print("=" * 60)

        app = create_app()

        print(f"Environment: {app.config.get('FLASK_ENV', 'unknown')}")
        print(f"Debug mode: {app.config.get('DEBUG', False)}")
        print(f"Log level: {app.config.get('LOG_LEVEL', 'INFO')}")
        print(f"Print width: {app.config.get('FRAME_WIDTH')}px")

        if not Path('config/settings.yaml').exists():
            print("⚠️  Missing config file: config/settings.yaml (using defaults)")

        font_path = app.config.get('CAPTION_FONT_PATH')
        if font_path and not Path(font_path).exists():
            print(f"⚠️  Caption font not found at {font_path}")
            print("   Captions will use the default font.")

        print("-" * 60)
        print("Starting development server...")
        print("API available at: http://localhost:5000/api/state")
        print("Press Ctrl+C to stop")
        print("-" * 60)

        # Booth state is in memory only; a reload discards it
        app.run(
            host='0.0.0.0',
            port=5000,
            debug=app.config.get('DEBUG', True),
            use_reloader=False,
            threaded=True
        )

    if __name__ == '__main__':
        main()

except ImportError as e:
    print(f"❌ Import error: {e}")
    print("\nPlease install the required dependencies:")
    print("  pip install -e .")
    sys.exit(1)
