#!/usr/bin/env python3
"""Simple HTTP server for the dashboard and the data/{country}.csv tables"""
import http.server
import os
import socketserver

import config


def make_handler():
    Handler = http.server.SimpleHTTPRequestHandler
    Handler.extensions_map.update({
        '.json': 'application/json',
        '.csv': 'text/csv',
    })
    return Handler


def main(port=config.SERVE_PORT, directory=config.BASE_DIR):
    os.chdir(directory)

    with socketserver.TCPServer(("", port), make_handler()) as httpd:
        print(f"Serving at http://localhost:{port}")
        print(f"Dashboard: http://localhost:{port}/{os.path.basename(config.OUTPUT_FILE)}")
        print(f"Data base URL: NPP_DATA_BASE_URL=http://localhost:{port}")
        print("Press Ctrl+C to stop")
        httpd.serve_forever()


if __name__ == "__main__":
    main()
