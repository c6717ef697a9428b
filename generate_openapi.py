#!/usr/bin/env python3
"""
Generate static OpenAPI JSON documentation for the proxy endpoints
"""

import json
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root))

try:
    from api_server import app

    openapi_schema = app.openapi()

    with open('openapi.json', 'w') as f:
        json.dump(openapi_schema, f, indent=2)

    print(f"✅ OpenAPI schema generated: openapi.json ({len(openapi_schema.get('paths', {}))} paths)")

except ImportError as e:
    print(f"❌ Error generating OpenAPI schema: {e}")
    print("Make sure all dependencies are installed: pip install -e .")
    sys.exit(1)
