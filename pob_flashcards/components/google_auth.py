import asyncio
import json
from nicegui import ui
from google.oauth2 import id_token
from google.auth.transport import requests as google_requests
from pob_flashcards.config import GOOGLE_AUTH_CLIENT_ID
from pob_flashcards.core.log_manager import logger

CALLBACK_PATH = '/auth/google/callback'

_google_request = google_requests.Request()

async def verify_google_token(token: str):
    """Verifies the Google JWT asynchronously. Returns the claims or None."""
    try:
        id_info = await asyncio.to_thread(
            id_token.verify_oauth2_token,
            token,
            _google_request,
            GOOGLE_AUTH_CLIENT_ID
        )
        return id_info
    except ValueError as e:
        logger.error(f"Token verification failed: {e}")
        return None
    except Exception as e:
        logger.error(f"Unexpected auth error: {e}")
        return None

class GoogleSignInButton(ui.element):
    def __init__(self, callback_path: str = CALLBACK_PATH):
        """
        Renders the Google Sign-In Button. The credential is handed to
        `callback_path?token=...`, which verifies it server-side.
        """
        super().__init__('div')
        self.callback_path = callback_path
        self.target_id = f'g-signin-{self.id}'
        self.props(f'id={self.target_id}')

        ui.timer(0.1, self._init_client_side, once=True)

    def _init_client_side(self):
        if not GOOGLE_AUTH_CLIENT_ID:
            logger.error("GOOGLE_CLIENT_ID is not configured; sign-in button disabled.")
            return

        # The GSI script loads async, so poll until it is available
        ui.run_javascript(f'''
            (function init() {{
                if (!window.google || !google.accounts || !google.accounts.id) {{
                    setTimeout(init, 200);
                    return;
                }}
                google.accounts.id.initialize({{
                    client_id: {json.dumps(GOOGLE_AUTH_CLIENT_ID)},
                    callback: (response) => {{
                        window.location.href = {json.dumps(self.callback_path)} + '?token=' + encodeURIComponent(response.credential);
                    }},
                }});
                google.accounts.id.renderButton(
                    document.getElementById({json.dumps(self.target_id)}),
                    {{ theme: 'filled_black', size: 'large', shape: 'pill' }}
                );
            }})();
        ''')
