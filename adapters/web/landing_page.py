# adapters/web/landing_page.py
# Landing page template and the embedded favicon.

import base64

LANDING_HTML: str = """<!DOCTYPE html>
<html>
<head>
<meta http-equiv="Content-Type" content="text/html; charset=UTF-8" />
<title>Download</title>
<style type="text/css">
body {
    margin: 5%;
    max-width: 768px;
    background-color: #9999ff;
    font-family: sans-serif;
}
#main {
    background-color: #6666cc;
    color: white;
    padding: 10px;
    border-radius: 15px;
}
#top { font-weight: bold; }
#disclaimer { font-style: italic; }
a { color: white; }
</style>
</head>
<body>
    <div id="main">
    <p id="top">A file is ready to be retrieved:</p>
    <dl>
        <dt>Name</dt>
        <dd>{{ view.name }}</dd>
        <dt>Size</dt>
        <dd>{{ view.pretty_size }} bytes</dd>
        {% if view.valid_until %}
        <dt>Valid until</dt>
        <dd>{{ view.valid_until }}</dd>
        {% endif %}
        <dt>Link</dt>
        <dd><a href="{{ download_url }}">Click here to start downloading</a></dd>
    </dl>
    </div>
    <p id="disclaimer">
    This link is only valid once. It will remain valid up to {{ validity }}
    after it has first been clicked.
    </p>
</body>
</html>
"""

# 16x16 ICO, served from memory so a favicon request never touches the disk
_FAVICON_B64: str = """
AAABAAEAEBAAAAAAAABoBAAAFgAAACgAAAAQAAAAIAAAAAEAIAAAAAAAAAQAAAAAAAAAAAAAAAAA
AAAAAAD///8A////AP///wD///8A////AP///wD///8A////AP///wD///8A////AP///wD///8A
////AP///wD///8A////AP///wB/wIYAgtGKAI/flwCe7qUAq/qyAMn/zgCu+bUAnOykAI7dlQCA
zIgAf7OEAH+kgwD///8A////AP///wD///8AAIINAAakFQAgvy8APdxMOUPhTraT/50BXfRrADrZ
SQAdvCwAApoRAABoCgAASggA////AP///wD///8A////AACCDQAGpBUAIb8wN1TOW/+N/5j/dup+
uVz0awE62UkAHbwsAAKaEQAAaAoAAEoIAP///wD///8A////AP///wAAgg0AB6QWN0a9Tv9b+mr/
YP5v/2v/ef883Ui5OtlJAR28LAACmhEAAGgKAABKCAD///8A////AP///wD///8AAYEOOES4TP9D
4lL/h/CR/4HyjP9S8WH/VvVl/yvINrkdvCwBApoRAABoCgAASggA////AP///wD///8AFXcfNk2v
Vv8oxzf/jOSU/4Xljv9/5oj/eeiD/0PiUv9H51b/FKQguAKaEQEAaAoAAEoIAP///wD///8ABnoR
KnG8ef+V2pv/ltyd/47clf9VyF//h9qP+Xfcgf9x3Xv/M9JC/zfXRv8Chw65AGgKAQBKCAD///8A
////AAODEA2FyIz/rNiw/57XpP9Uv1z/Dq0dHBi3JwIRsCD5cNN5/2jTcv8jwjL/JsY1/wNfC7QA
SggB////AP///wD///8AAJcPDQ2kF/9dwGX/A6ESHQ6tHQAYtycAD64eAgWkFPloyXH/X8dp/xCv
H/8UsyP/A0wLsz93RQH///8A////AP///wAKqRkLC6gaFQKhEQAOrR0AGLcnAA+uHgADohICAJIO
+Wm5cP9buWX/AJkP/wCfD/85cT+1P3VFAf///wD///8ACqkZAAyqGgACoREADq0dABi3JwAPrh4A
A6ISAACYDwIAmA75bK1x/1+nZv8Adwz/Pp1H/wBIBx7///8A////AAqpGQAMqhoAAqERAA6tHQAY
tycAD64eAAOiEgAAmA8AAJ0PAgCZDvlvqXX/d658/wBjC0f///8A////AP///wAKqRkADKoaAAKh
EQAOrR0AGLcnAA+uHgADohIAAJgPAACdDwAAng8CAJcO+BqNJUf///8A////AP///wD///8AhNSM
AIXUjACA0IgAhtaOAIvbkwCH1o4AgdCIAH/LhwB/zocAf86HAH/KhgB/wYYA////AP///wD///8A
////AP///wD///8A////AP///wD///8A////AP///wD///8A////AP///wD///8A////AP///wD/
//8A//8AAP//AAD9/wAA+P8AAPB/AADgPwAAwB8AAIAPAACGBwAAzwMAAP+BAAD/wQAA/+MAAP/3
AAD//wAA//8AAA==
"""

FAVICON_ICO: bytes = base64.b64decode("".join(_FAVICON_B64.split()))


def describe_validity(seconds: int) -> str:
    """
    Human wording for a validity window.

    Example: 14400  →  '4 hours'
    Example: 5400   →  '90 minutes'
    """
    if seconds % 3600 == 0:
        hours = seconds // 3600
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    if seconds % 60 == 0:
        minutes = seconds // 60
        return f"{minutes} minute" if minutes == 1 else f"{minutes} minutes"
    return f"{seconds} seconds"
