# utils/print_utils.py

def divider(char="-", length=60):
    print(char * length)

def print_server_header(label: str):
    divider("=")
    print(f"🔹 Server: {label}")
