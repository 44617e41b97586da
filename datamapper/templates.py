from __future__ import annotations

from html import escape
from typing import Dict, List

ACCEPTED_EXTENSIONS = ".txt,.json,.xml,.csv"

VIEWS: List[Dict[str, str]] = [
    {"name": "home", "label": "Home"},
    {"name": "upload", "label": "Upload"},
    {"name": "process", "label": "Process"},
    {"name": "result", "label": "Results"},
]


def render_index(*, default_model: str) -> str:
    nav_html = "\n".join(_render_nav_button(view) for view in VIEWS)
    model_attr = escape(default_model)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width, initial-scale=1" />
  <title>AI Data Mapper</title>
  <style>
    :root {{
      color-scheme: light;
      --bg: #f4f5f8;
      --border: #d8dbe2;
      --panel-bg: #fff;
      --accent: #3367d6;
      --accent-2: #7c3aed;
      --muted: #666;
      --ok: #1f8b4c;
      --warn: #b7791f;
      --bad: #c53030;
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", sans-serif;
    }}
    [hidden] {{
      display: none !important;
    }}
    body {{
      margin: 0;
      background: var(--bg);
      color: #111;
      min-height: 100vh;
    }}
    nav {{
      display: flex;
      justify-content: space-between;
      align-items: center;
      padding: 0.75rem 1.5rem;
      background: var(--panel-bg);
      border-bottom: 1px solid var(--border);
    }}
    nav .brand {{
      font-weight: 700;
      font-size: 1.2rem;
    }}
    nav .tabs {{
      display: flex;
      gap: 0.25rem;
    }}
    nav button {{
      border: none;
      background: transparent;
      color: var(--muted);
      padding: 0.45rem 0.9rem;
      border-radius: 6px;
      cursor: pointer;
      font: inherit;
    }}
    nav button.active {{
      background: #e3ebfb;
      color: var(--accent);
    }}
    main {{
      max-width: 960px;
      margin: 0 auto;
      padding: 1.5rem;
    }}
    .panel {{
      background: var(--panel-bg);
      border: 1px solid var(--border);
      border-radius: 12px;
      padding: 1.5rem;
    }}
    .notice {{
      padding: 0.75rem 1rem;
      border-radius: 8px;
      margin-bottom: 1rem;
    }}
    .notice.success {{
      background: #e9f7ef;
      border: 1px solid #b7e1c7;
      color: var(--ok);
    }}
    .notice.error {{
      background: #fdecec;
      border: 1px solid #f5bcbc;
      color: var(--bad);
    }}
    .grid {{
      display: grid;
      grid-template-columns: repeat(auto-fit, minmax(220px, 1fr));
      gap: 1rem;
    }}
    .card {{
      border: 1px solid var(--border);
      border-radius: 10px;
      padding: 1rem;
    }}
    .dropzone {{
      border: 2px dashed var(--border);
      border-radius: 10px;
      padding: 1.5rem;
      text-align: center;
    }}
    .dropzone .selected {{
      color: var(--ok);
      font-size: 0.9rem;
      margin-top: 0.5rem;
    }}
    .badge {{
      font-weight: 600;
      text-transform: capitalize;
    }}
    .badge[data-state="connected"] {{ color: var(--ok); }}
    .badge[data-state="disconnected"] {{ color: var(--bad); }}
    .badge[data-state="checking"] {{ color: var(--warn); }}
    .actions {{
      text-align: center;
      margin-top: 1.5rem;
    }}
    .actions button, .result-header button {{
      background: linear-gradient(90deg, var(--accent), var(--accent-2));
      color: #fff;
      border: none;
      border-radius: 8px;
      padding: 0.7rem 1.4rem;
      font: inherit;
      cursor: pointer;
    }}
    button:disabled {{
      opacity: 0.5;
      cursor: not-allowed;
    }}
    select, input[type="text"] {{
      width: 100%;
      padding: 0.5rem;
      border: 1px solid var(--border);
      border-radius: 6px;
      font: inherit;
      box-sizing: border-box;
    }}
    .result-header {{
      display: flex;
      justify-content: space-between;
      align-items: center;
      gap: 0.5rem;
      flex-wrap: wrap;
    }}
    pre.result {{
      white-space: pre-wrap;
      background: #f7f8fb;
      border-radius: 8px;
      padding: 1rem;
      max-height: 24rem;
      overflow: auto;
    }}
    .placeholder {{
      color: var(--muted);
    }}
  </style>
</head>
<body>
  <nav>
    <span class="brand">AI Data Mapper</span>
    <div class="tabs">
      {nav_html}
    </div>
  </nav>
  <main id="shell" data-default-model="{model_attr}">
    <div class="notice success" id="success-message" hidden></div>
    <div class="notice error" id="error-message" hidden></div>
    <div class="panel">
      <section data-view="home">
        <h1>AI Data Mapper</h1>
        <p class="placeholder">Upload a template and a data file; a local model fills the template from the data.</p>
        <div class="grid">
          <div class="card"><h3>Upload Files</h3><p>Pick a template and a data file.</p></div>
          <div class="card"><h3>AI Processing</h3><p>The model maps the data onto the template.</p></div>
          <div class="card"><h3>Download Results</h3><p>Save or download the mapped output.</p></div>
        </div>
        <div class="card" style="margin-top: 1rem;">
          <strong>Ollama connection:</strong>
          <span class="badge" id="connection-badge" data-state="checking">checking</span>
          <p class="placeholder" id="connection-help" hidden>Please ensure Ollama is running to use AI features.</p>
        </div>
      </section>
      <section data-view="upload" hidden>
        <h2>Upload Your Files</h2>
        <div class="grid">
          {_render_file_picker('template', 'Template File')}
          {_render_file_picker('data', 'Data File')}
        </div>
        <div class="actions">
          <button type="button" id="upload-button" disabled>Upload Files</button>
        </div>
      </section>
      <section data-view="process" hidden>
        <h2>Process Data Mapping</h2>
        <div class="card" id="uploaded-files">
          <p class="placeholder">Upload files first.</p>
        </div>
        <div class="card" style="margin-top: 1rem;">
          <label for="model-select">Choose AI model</label>
          <select id="model-select"></select>
        </div>
        <div class="actions">
          <button type="button" id="process-button" disabled>Start Processing</button>
        </div>
      </section>
      <section data-view="result" hidden>
        <h2>Mapping Results</h2>
        <div id="result-empty" class="placeholder">No result yet.</div>
        <div id="result-panel" hidden>
          <div class="result-header">
            <h3>Mapped Data Output</h3>
            <button type="button" id="download-button">Download</button>
          </div>
          <pre class="result" id="result-text"></pre>
          <div class="result-header">
            <input type="text" id="save-filename" placeholder="mapped-data.txt" />
            <button type="button" id="save-button">Save to server</button>
          </div>
          <p id="saved-link" hidden></p>
        </div>
      </section>
    </div>
  </main>
  <noscript><div class="placeholder">JavaScript is required for this page.</div></noscript>
  {_app_script()}
</body>
</html>"""


def _render_nav_button(view: Dict[str, str]) -> str:
    name = escape(view["name"])
    label = escape(view["label"])
    return f'<button type="button" data-target="{name}">{label}</button>'


def _render_file_picker(kind: str, title: str) -> str:
    kind_attr = escape(kind)
    return (
        f'<div><h3>{escape(title)}</h3>'
        f'<div class="dropzone">'
        f'<p>Choose your {kind_attr} file</p>'
        f'<input type="file" id="{kind_attr}-input" data-kind="{kind_attr}" accept="{ACCEPTED_EXTENSIONS}" />'
        f'<p class="selected" id="{kind_attr}-selected" hidden></p>'
        f"</div></div>"
    )


def _app_script() -> str:
    return """
    <script>
      (function(){
        const View = Object.freeze({
          HOME: 'home',
          UPLOAD: 'upload',
          PROCESS: 'process',
          RESULT: 'result',
        });
        const shell = document.getElementById('shell');
        const state = {
          view: View.HOME,
          files: { template: null, data: null },
          uploaded: null,
          result: '',
          busy: false,
          connection: 'checking',
          models: [],
          selectedModel: shell.dataset.defaultModel || '',
          error: '',
          success: '',
        };

        const $ = function(id){ return document.getElementById(id); };

        function transition(view) {
          if (!Object.values(View).includes(view)) {
            return;
          }
          state.view = view;
          render();
        }

        function setMessages(error, success) {
          state.error = error || '';
          state.success = success || '';
        }

        function escapeText(value) {
          const node = document.createElement('span');
          node.textContent = value == null ? '' : String(value);
          return node.innerHTML;
        }

        function render() {
          document.querySelectorAll('section[data-view]').forEach(function(section){
            section.hidden = section.dataset.view !== state.view;
          });
          document.querySelectorAll('nav button[data-target]').forEach(function(button){
            button.classList.toggle('active', button.dataset.target === state.view);
          });

          const errorBox = $('error-message');
          errorBox.textContent = state.error;
          errorBox.hidden = !state.error;
          const successBox = $('success-message');
          successBox.textContent = state.success;
          successBox.hidden = !state.success;

          const badge = $('connection-badge');
          badge.dataset.state = state.connection;
          badge.textContent = state.connection;
          $('connection-help').hidden = state.connection !== 'disconnected';

          ['template', 'data'].forEach(function(kind){
            const label = $(kind + '-selected');
            const file = state.files[kind];
            label.hidden = !file;
            label.textContent = file ? 'Selected: ' + file.name : '';
          });
          const upload = $('upload-button');
          upload.disabled = state.busy || !state.files.template || !state.files.data;
          upload.textContent = state.busy && state.view === View.UPLOAD ? 'Uploading...' : 'Upload Files';

          const uploadedBox = $('uploaded-files');
          if (state.uploaded) {
            uploadedBox.innerHTML =
              '<p><strong>Template:</strong> ' + escapeText(state.uploaded.template.originalName) + '</p>' +
              '<p><strong>Data:</strong> ' + escapeText(state.uploaded.data.originalName) + '</p>';
          } else {
            uploadedBox.innerHTML = '<p class="placeholder">Upload files first.</p>';
          }

          const select = $('model-select');
          const names = state.models.map(function(model){ return model.name; });
          if (select.dataset.names !== JSON.stringify(names)) {
            select.innerHTML = names.map(function(name){
              return '<option value="' + escapeText(name) + '">' + escapeText(name) + '</option>';
            }).join('');
            select.dataset.names = JSON.stringify(names);
          }
          select.value = state.selectedModel;
          const processButton = $('process-button');
          processButton.disabled = state.busy || state.connection !== 'connected' || !state.uploaded;
          processButton.textContent = state.busy && state.view === View.PROCESS ? 'Processing...' : 'Start Processing';

          $('result-empty').hidden = !!state.result;
          $('result-panel').hidden = !state.result;
          $('result-text').textContent = state.result;
          $('save-button').disabled = state.busy;
        }

        async function readJson(response) {
          try {
            return await response.json();
          } catch (err) {
            return {};
          }
        }

        async function checkStatus() {
          try {
            const response = await fetch('/api/ollama/status');
            const data = await readJson(response);
            if (data.status === 'connected') {
              state.connection = 'connected';
              state.models = data.models || [];
              if (state.models.length > 0) {
                state.selectedModel = state.models[0].name;
              }
            } else {
              state.connection = 'disconnected';
            }
          } catch (err) {
            state.connection = 'disconnected';
          }
          render();
        }

        async function handleUpload() {
          if (!state.files.template || !state.files.data) {
            setMessages('Please select both template and data files');
            render();
            return;
          }
          state.busy = true;
          setMessages('', state.success);
          render();
          try {
            const form = new FormData();
            form.append('template', state.files.template);
            form.append('data', state.files.data);
            const response = await fetch('/api/upload', { method: 'POST', body: form });
            const data = await readJson(response);
            if (response.ok) {
              state.uploaded = data.files;
              setMessages('', 'Files uploaded successfully!');
              state.view = View.PROCESS;
            } else {
              setMessages(data.error || 'Upload failed');
            }
          } catch (err) {
            setMessages('Upload failed. Please check your connection.');
          } finally {
            state.busy = false;
            render();
          }
        }

        async function handleProcess() {
          if (!state.uploaded) {
            setMessages('Please upload files first');
            render();
            return;
          }
          state.busy = true;
          state.result = '';
          setMessages('', state.success);
          render();
          try {
            const response = await fetch('/api/process', {
              method: 'POST',
              headers: { 'Content-Type': 'application/json' },
              body: JSON.stringify({
                templatePath: state.uploaded.template.path,
                dataPath: state.uploaded.data.path,
                model: state.selectedModel,
              }),
            });
            const data = await readJson(response);
            if (response.ok) {
              state.result = data.result;
              setMessages('', 'Data mapping completed successfully!');
              state.view = View.RESULT;
            } else {
              setMessages(data.error || 'Processing failed');
            }
          } catch (err) {
            setMessages('Processing failed. Please check your connection and ensure Ollama is running.');
          } finally {
            state.busy = false;
            render();
          }
        }

        function handleDownload() {
          if (!state.result) {
            return;
          }
          const blob = new Blob([state.result], { type: 'text/plain' });
          const url = URL.createObjectURL(blob);
          const link = document.createElement('a');
          link.href = url;
          link.download = 'mapped-data-' + Date.now() + '.txt';
          document.body.appendChild(link);
          link.click();
          document.body.removeChild(link);
          URL.revokeObjectURL(url);
        }

        async function handleSave() {
          if (!state.result) {
            return;
          }
          const input = $('save-filename');
          const filename = input.value.trim() || ('mapped-data-' + Date.now() + '.txt');
          state.busy = true;
          render();
          try {
            const response = await fetch('/api/save-result', {
              method: 'POST',
              headers: { 'Content-Type': 'application/json' },
              body: JSON.stringify({ content: state.result, filename: filename }),
            });
            const data = await readJson(response);
            const link = $('saved-link');
            if (response.ok) {
              setMessages('', data.message || 'File saved successfully');
              link.innerHTML = '<a href="/api/download/' + encodeURIComponent(data.filename) + '">' +
                escapeText(data.filename) + '</a>';
              link.hidden = false;
            } else {
              setMessages(data.error || 'Failed to save file');
            }
          } catch (err) {
            setMessages('Save failed. Please check your connection.');
          } finally {
            state.busy = false;
            render();
          }
        }

        document.querySelectorAll('nav button[data-target]').forEach(function(button){
          button.addEventListener('click', function(){ transition(button.dataset.target); });
        });
        document.querySelectorAll('input[type="file"][data-kind]').forEach(function(input){
          input.addEventListener('change', function(){
            state.files[input.dataset.kind] = input.files[0] || null;
            setMessages('', state.success);
            render();
          });
        });
        $('model-select').addEventListener('change', function(event){
          state.selectedModel = event.target.value;
        });
        $('upload-button').addEventListener('click', handleUpload);
        $('process-button').addEventListener('click', handleProcess);
        $('download-button').addEventListener('click', handleDownload);
        $('save-button').addEventListener('click', handleSave);

        render();
        checkStatus();
      })();
    </script>
    """
