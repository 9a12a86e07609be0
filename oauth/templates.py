"""HTML templates for the token relay pages.

Templates are filled with str.format(), so literal CSS/JS braces are doubled.
Every value substituted into a template must be HTML-escaped first
(see oauth.relay.render_* helpers).

Theme colors:
- Background: #F8F9FA
- Primary: #4A154B (aubergine)
- Success: #28A745
- Text: #333333
- Secondary text: #6C757D
"""

# Shared stylesheet; formatted into each page as {style}
BASE_STYLE = """
        body { font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
               max-width: 800px; margin: 0 auto; padding: 20px; line-height: 1.6; background: #F8F9FA; }
        .container { background: white; padding: 30px; border-radius: 12px; box-shadow: 0 2px 10px rgba(0,0,0,0.1); }
        h1 { color: #333; margin-bottom: 10px; }
        h3 { color: #555; margin-top: 25px; }
        .button { background: #4A154B; color: white; padding: 12px 24px; text-decoration: none;
                  border-radius: 8px; display: inline-block; margin: 15px 0; border: none; cursor: pointer;
                  font-size: 16px; transition: background 0.3s; }
        .button:hover { background: #611F64; }
        .warning { background: #FFF3CD; color: #856404; padding: 15px; border-radius: 8px; margin: 15px 0;
                   border-left: 4px solid #FFC107; }
        .info { background: #D4EDDA; color: #155724; padding: 15px; border-radius: 8px; margin: 15px 0;
                border-left: 4px solid #28A745; }
        .error { background: #F8D7DA; color: #721C24; padding: 15px; border-radius: 8px; margin: 15px 0;
                 border-left: 4px solid #DC3545; word-break: break-word; }
        ul, ol { padding-left: 20px; }
        li { margin: 8px 0; }
"""


# ============== Start Page ==============

HOME_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>Slack User Token Generator</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>{style}
        .form-group {{ margin: 15px 0; }}
        label {{ display: block; margin-bottom: 8px; font-weight: 600; color: #333; }}
        input {{ width: 100%; max-width: 400px; padding: 12px; border: 2px solid #DDD; border-radius: 8px;
                 font-size: 14px; }}
        input:focus {{ outline: none; border-color: #4A154B; }}
        small {{ color: #6C757D; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>Slack User Token Generator</h1>
        <div class="warning">
            <strong>Important:</strong> This will generate a personal access token for your Slack account.
            Only proceed if you understand what you're authorizing.
        </div>
        <div class="info">
            <strong>This app will request these permissions:</strong>
            <ul>{scope_items}
            </ul>
        </div>
        <div class="info">
            <strong>Security &amp; Privacy:</strong>
            <ul>
                <li><strong>No Storage:</strong> Your token is never stored on this server</li>
                <li><strong>Direct Display:</strong> The token appears only on your screen for copying</li>
                <li><strong>Your Control:</strong> You can revoke access anytime in Slack settings</li>
            </ul>
        </div>
        <form action="{start_path}" method="get">
            <div class="form-group">
                <label for="user_id">Your User ID (optional):</label>
                <input type="text" id="user_id" name="user_id" placeholder="e.g., john.doe or U1234567890" maxlength="{max_length}">
                <small>This helps identify you in logs (optional)</small>
            </div>
            <div class="form-group">
                <label for="user_name">Your Name (optional):</label>
                <input type="text" id="user_name" name="user_name" placeholder="e.g., John Doe" maxlength="{max_length}">
                <small>For display purposes only (optional)</small>
            </div>
            <button type="submit" class="button">Generate My Slack Token</button>
        </form>
        <h3>What happens next?</h3>
        <ol>
            <li><strong>Slack Authorization:</strong> You'll be redirected to Slack to review and approve permissions</li>
            <li><strong>Token Generation:</strong> Slack generates your personal access token</li>
            <li><strong>Direct Display:</strong> Your token appears on screen once for copying</li>
        </ol>
    </div>
</body>
</html>"""

SCOPE_ITEM = """
                <li><code>{scope}</code></li>"""


# ============== Token Page ==============

TOKEN_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>Token Generated Successfully</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>{style}
        .token-display {{ background: #F1F3F5; border: 2px dashed #4A154B; border-radius: 8px; padding: 15px;
                          font-family: 'SFMono-Regular', Consolas, monospace; font-size: 14px;
                          word-break: break-all; cursor: pointer; }}
        .info-grid {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 15px;
                      margin: 20px 0; }}
        .info-item {{ background: #F8F9FA; padding: 12px; border-radius: 8px; }}
        .info-item strong {{ display: block; color: #6C757D; font-size: 12px; text-transform: uppercase; }}
        #copyStatus {{ color: #28A745; margin-left: 10px; }}
    </style>
</head>
<body>
    <div class="container">
        <h1>Your Slack Token is Ready!</h1>
        <p><strong>Copy this token now. It won't be shown again.</strong></p>
        <div class="token-display" id="tokenDisplay">{access_token}</div>
        <button class="button" id="copyButton" onclick="copyToken()">Copy Token to Clipboard</button>
        <span id="copyStatus"></span>
        <div class="info-grid">
            <div class="info-item"><strong>User</strong>{owner_name}</div>
            <div class="info-item"><strong>User ID</strong>{owner_id}</div>
            <div class="info-item"><strong>Team</strong>{team_name}</div>
            <div class="info-item"><strong>Permissions</strong>{scopes}</div>
        </div>
        <div class="warning">
            <strong>Important Security Notes:</strong>
            <ul>
                <li>This token grants access to your Slack account with the permissions shown above</li>
                <li>Never share this token publicly or commit it to version control</li>
                <li>Store it in environment variables or secure configuration</li>
                <li>You can revoke it anytime from your Slack workspace settings (Apps, Manage, Remove)</li>
            </ul>
        </div>
        <p style="color: #6C757D; text-align: center;">
            Generated: {generated_at}<br>
            <small>Close this window once you've copied your token</small>
        </p>
    </div>
    <script>
        let tokenCopied = false;
        function copyToken() {{
            const token = document.getElementById('tokenDisplay').textContent.trim();
            const status = document.getElementById('copyStatus');
            navigator.clipboard.writeText(token).then(function() {{
                tokenCopied = true;
                status.textContent = 'Copied!';
                setTimeout(function() {{ status.textContent = ''; }}, 3000);
            }}, function() {{
                status.textContent = 'Copy failed - please select and copy manually';
            }});
        }}
        document.getElementById('tokenDisplay').addEventListener('click', function() {{
            const range = document.createRange();
            range.selectNode(this);
            window.getSelection().removeAllRanges();
            window.getSelection().addRange(range);
        }});
        window.addEventListener('beforeunload', function(e) {{
            if (!tokenCopied) {{
                e.preventDefault();
                e.returnValue = "Have you copied your token? It won't be shown again.";
            }}
        }});
    </script>
</body>
</html>"""

# Used when TOKEN_PAGE cannot be rendered; the token must still reach the user
FALLBACK_TOKEN_TEXT = """Token generated successfully.

Your token: {access_token}

Copy it now and store it securely. It will not be shown again.
"""


# ============== Error Page ==============

ERROR_PAGE = """<!DOCTYPE html>
<html>
<head>
    <title>{title}</title>
    <meta charset="utf-8">
    <meta name="viewport" content="width=device-width, initial-scale=1">
    <style>{style}</style>
</head>
<body>
    <div class="container">
        <h1>{title}</h1>
        <p>Something went wrong during token generation.</p>
        <div class="error">
            <strong>Error Details:</strong><br>
            {message}
        </div>
        <p>Please try again or contact your administrator if the problem persists.</p>
        <a href="{home_path}" class="button">Try Again</a>
    </div>
</body>
</html>"""
