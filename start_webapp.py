#!/usr/bin/env python3
"""
JobFinder Web App Startup Script
Run this to start the web interface for JobFinder
"""

import sys

from webapp import config, run_webapp


def main():
    port = config.get('webapp', 'port')

    print("Starting JobFinder Web Application...")
    print("Interface will be available at:")
    print(f"   • http://localhost:{port}")
    print(f"   • http://127.0.0.1:{port}")
    print("\nFeatures available:")
    print("   • Free-text job search")
    print("   • Resume (PDF) upload and matching")
    print("\nMake sure HF_API_KEY is set and the Chroma server is running!")
    print("Press Ctrl+C to stop the server")
    print("=" * 60)

    try:
        run_webapp()
    except KeyboardInterrupt:
        print("\nJobFinder Web App stopped. Goodbye!")
        sys.exit(0)
    except OSError as e:
        print(f"\nError starting web app: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
