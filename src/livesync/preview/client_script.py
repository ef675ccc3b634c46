"""Browser-side runtime served at ``/livesync.js``.

It opens a WebSocket back to the server that injected it and applies every
pushed ``{"file", "content"}`` message to the live page: CSS replaces the
text of one dedicated ``<style data-livesync>`` element, HTML is reconciled
against ``document.documentElement`` with morphdom. Existing ``<script>``
elements are never updated, so the runtime itself survives a patch.
"""

BOOTSTRAP_PATH = "livesync.js"
SOCKET_PATH = "/socket"
MORPHDOM_URL = "https://cdn.jsdelivr.net/npm/morphdom@2.7.0/dist/morphdom-umd.min.js"
DEFAULT_SOCKET_URL = "ws://127.0.0.1:9090/socket"
RECONNECT_MS = 800

_CLIENT_TEMPLATE = r"""
(function () {
  if (window.__livesync__) return;
  window.__livesync__ = true;
  console.log("livesync client loaded");

  function loadMorphdom(cb) {
    if (window.morphdom) return cb();
    var s = document.createElement("script");
    s.src = "__MORPHDOM_URL__";
    s.onload = cb;
    document.head.appendChild(s);
  }

  function getSocketURL() {
    var scripts = document.querySelectorAll("script");
    for (var i = 0; i < scripts.length; i++) {
      var src = scripts[i].src || "";
      if (src.indexOf("__BOOTSTRAP_PATH__") !== -1) {
        var u = new URL(src);
        return (u.protocol === "https:" ? "wss://" : "ws://") + u.host + "__SOCKET_PATH__";
      }
    }
    return "__DEFAULT_SOCKET_URL__";
  }

  function patchHTML(html) {
    if (!window.morphdom) return;
    var doc = new DOMParser().parseFromString(html, "text/html");
    window.morphdom(document.documentElement, doc.documentElement, {
      onBeforeElUpdated: function (fromEl) {
        return fromEl.tagName !== "SCRIPT";
      }
    });
  }

  function applyCSS(cssText) {
    var style = document.querySelector("style[data-livesync]");
    if (!style) {
      style = document.createElement("style");
      style.setAttribute("data-livesync", "1");
      document.head.appendChild(style);
    }
    style.textContent = cssText;
  }

  function handle(text) {
    var d;
    try {
      d = JSON.parse(text || "{}");
    } catch (e) {
      console.error("livesync: dropped malformed message", e);
      return;
    }
    var file = String(d.file || "").toLowerCase();
    try {
      if (/\.css$/.test(file)) {
        applyCSS(d.content || "");
      } else if (/\.html?$/.test(file)) {
        patchHTML(d.content || "");
      }
    } catch (e) {
      console.error("livesync: could not apply update to " + file, e);
    }
  }

  function connect() {
    var ws = new WebSocket(getSocketURL());
    ws.onopen = function () { console.log("livesync connected"); };
    ws.onmessage = function (evt) {
      if (typeof evt.data === "string") {
        handle(evt.data);
      } else if (evt.data instanceof Blob) {
        evt.data.text().then(handle);
      }
    };
    ws.onclose = function () { setTimeout(connect, __RECONNECT_MS__); };
    ws.onerror = function () { try { ws.close(); } catch (_) {} };
  }

  loadMorphdom(connect);
})();
"""


def render_client_script(reconnect_ms: int = RECONNECT_MS,
                         socket_path: str = SOCKET_PATH) -> str:
    replacements = {
        "__MORPHDOM_URL__": MORPHDOM_URL,
        "__BOOTSTRAP_PATH__": BOOTSTRAP_PATH,
        "__SOCKET_PATH__": socket_path,
        "__DEFAULT_SOCKET_URL__": DEFAULT_SOCKET_URL,
        "__RECONNECT_MS__": str(int(reconnect_ms)),
    }
    script = _CLIENT_TEMPLATE
    for token, value in replacements.items():
        script = script.replace(token, value)
    return script
