"""Local placeholder artifact shown when the generation backend is down."""

_FALLBACK_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Fallback Generated</title>
  <style>
    body {
      font-family: Arial, sans-serif;
      display: flex;
      justify-content: center;
      align-items: center;
      min-height: 100vh;
      margin: 0;
      background: #f4f4f5;
    }
    .container {
      background: white;
      padding: 30px;
      border-radius: 12px;
      box-shadow: 0 4px 6px rgba(0,0,0,0.1);
      text-align: center;
    }
    .warning {
      background: #fff3cd;
      border: 1px solid #ffeaa7;
      border-radius: 6px;
      padding: 10px;
      margin: 15px 0;
      color: #856404;
    }
  </style>
</head>
<body>
  <div class="container">
    <h1>Fallback Mode</h1>
    <p>Backend server unavailable</p>
    <div class="warning">From: "__TRANSCRIPT__"</div>
    <p><small>Start your backend server for AI generation</small></p>
  </div>
</body>
</html>
"""


def render_fallback_document(transcript: str) -> str:
    """Build a self-contained HTML page quoting the transcript verbatim."""
    return _FALLBACK_TEMPLATE.replace("__TRANSCRIPT__", transcript)
