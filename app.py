from flask import Flask, request, jsonify, make_response
from flask_cors import CORS
import os
import json
import threading
import pandas as pd
from probing.hashing import CapacityExceeded, InvalidCapacity, UnknownStrategy, get_strategy, new_table
from probing.probes import DEFAULT_TABLE_SIZE, STRATEGIES
from probing.driver import ValueMismatch, parse_keys, run_batch, run_keys
from probing.report import build_pdf, build_report_zip, render_collision_log, render_tables, report_filenames
from probing.searching import search_by_key

HASH_TABLE_SIZE = int(os.environ.get("PROBING_TABLE_SIZE", DEFAULT_TABLE_SIZE))
DEFAULT_BATCH_STRATEGIES = "linear,quadratic"

app = Flask(__name__)
CORS(app)

# In-memory working set; nothing is persisted between runs of the server
state = {"source": "keys", "keys": [], "runs": {}}
lock = threading.Lock()


def error(message, status=400):
    return jsonify({"status": "error", "message": message}), status


def load_keys(raw_list):
    """
    Accepts a list of integers (or integer-like strings).
    Returns the parsed keys; raises ValueError on anything else.
    """
    keys = []
    for k in raw_list:
        if isinstance(k, bool) or isinstance(k, float) and not k.is_integer():
            raise ValueError(f"Key must be an integer: {k!r}")
        try:
            keys.append(int(k))
        except TypeError:
            raise ValueError(f"Key must be an integer: {k!r}") from None
    return keys


def read_frame_keys(df):
    columns = [str(c).strip().lower() for c in df.columns]
    column = df.columns[columns.index("key")] if "key" in columns else df.columns[0]
    return load_keys(df[column].dropna().tolist())


def replace_keys(source, keys):
    with lock:
        state["source"] = source
        state["keys"] = keys
        state["runs"] = {}
    app.logger.info("Loaded %d keys from %s", len(keys), source)
    return jsonify({"status": "success", "source": source, "count": len(keys), "keys": keys}), 200


class NoRun(LookupError):
    pass


def last_run(strategy):
    """Return (run, table, source) for strategy, or raise NoRun if never run."""
    name = get_strategy(strategy).name
    with lock:
        entry = state["runs"].get(name)
    if entry is None:
        raise NoRun(f"No run for strategy '{name}', POST /run/{name} first")
    return entry


@app.errorhandler(UnknownStrategy)
def handle_unknown_strategy(e):
    return error(str(e), 404)


@app.errorhandler(NoRun)
def handle_missing_run(e):
    return error(str(e), 404)


@app.route("/", methods=["GET"])
def home():
    return "Probe table backend is active", 200


def keys_from_file(file):
    """
    Parse integer keys from an uploaded file: .txt (whitespace separated),
    .json (array), .csv or .xlsx (column 'key', else the first column).
    Raises ValueError when the file cannot be read as keys.
    """
    filename = file.filename.lower()

    if filename.endswith(".txt"):
        return parse_keys(file.read().decode("utf-8", errors="replace"))

    if filename.endswith(".json"):
        try:
            file_json = json.load(file)
        except ValueError as e:
            raise ValueError(f"Invalid JSON file: {str(e)}") from e
        if not isinstance(file_json, list):
            raise ValueError("JSON must be an array of integer keys")
        return load_keys(file_json)

    if filename.endswith(".csv") or filename.endswith(".xlsx"):
        try:
            if filename.endswith(".csv"):
                df = pd.read_csv(file)
            else:
                df = pd.read_excel(file)
            if df.columns.empty:
                raise ValueError("File has no columns")
            return read_frame_keys(df)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Failed to parse file: {str(e)}") from e

    raise ValueError("Unsupported file type. Use .txt, .json, .csv or .xlsx")


@app.route("/upload", methods=["POST"])
def upload():
    if request.is_json and not request.files:
        payload = request.get_json()
        if not isinstance(payload, list):
            return error("JSON body must be a list of integer keys")
        try:
            return replace_keys("keys", load_keys(payload))
        except (TypeError, ValueError) as e:
            return error(str(e))

    if 'file' not in request.files:
        return error("No file part in the request")

    file = request.files['file']
    try:
        keys = keys_from_file(file)
    except ValueError as e:
        return error(str(e))
    return replace_keys(file.filename, keys)


@app.route("/keys", methods=["GET"])
def view_keys():
    with lock:
        return jsonify({"source": state["source"], "keys": list(state["keys"])}), 200


@app.route("/strategies", methods=["GET"])
def strategies():
    return jsonify([{"name": s.name, "label": s.label} for s in STRATEGIES.values()]), 200


@app.route("/run/<string:strategy>", methods=["POST"])
def api_run(strategy):
    name = get_strategy(strategy).name
    strict = request.args.get("strict", "1").lower() not in ("0", "false", "no")
    size = request.args.get("size", HASH_TABLE_SIZE, type=int)
    try:
        table = new_table(name, size)
    except InvalidCapacity as e:
        return error(str(e))

    with lock:
        keys = list(state["keys"])
        try:
            result = run_keys(table, keys, strict=strict)
        except CapacityExceeded as e:
            app.logger.warning("Run %s aborted: %s", name, e)
            return error(str(e), 409)
        except ValueMismatch as e:
            app.logger.error("Run %s aborted: %s", name, e)
            return error(str(e), 500)
        state["runs"][name] = (result, table, state["source"])

    body = result.summary()
    body["status"] = "success"
    body["phases"] = [
        dict(summary, outcomes=[o.to_dict() for o in phase.outcomes])
        for summary, phase in zip(body["phases"], result.phases)
    ]
    return jsonify(body), 200


@app.route("/batch", methods=["POST"])
def api_batch():
    """
    Run several uploaded key files against several strategies, each on a
    fresh table, and return all collision logs and table dumps as a zip.
    Form fields: files (repeated), strategies (comma separated,
    default linear,quadratic). Query: size, strict.
    """
    files = request.files.getlist("files")
    if not files:
        return error("No files part in the request")
    raw = request.form.get("strategies") or request.args.get("strategies") or DEFAULT_BATCH_STRATEGIES
    names = [get_strategy(s.strip()).name for s in raw.split(",") if s.strip()]
    if not names:
        return error("No strategies given")
    strict = request.args.get("strict", "1").lower() not in ("0", "false", "no")
    size = request.args.get("size", HASH_TABLE_SIZE, type=int)
    if size <= 0:
        return error(str(InvalidCapacity(size)))

    sources = []
    for file in files:
        try:
            sources.append((file.filename, keys_from_file(file)))
        except ValueError as e:
            return error(f"{file.filename}: {str(e)}")

    batch = run_batch(sources, names, size, strict=strict)
    app.logger.info("Batch of %d files x %d strategies: %d runs, %d failed",
                    len(sources), len(names), len(batch.runs), len(batch.failures))
    response = make_response(build_report_zip(batch))
    response.headers.set('Content-Type', 'application/zip')
    response.headers.set('Content-Disposition', 'attachment', filename='probing_reports.zip')
    return response


@app.route("/hashview/<string:strategy>", methods=["GET"])
def hash_view(strategy):
    _, table, _ = last_run(strategy)
    return jsonify(table.as_list()), 200


@app.route("/dump/<string:strategy>", methods=["GET"])
def dump(strategy):
    _, table, _ = last_run(strategy)
    response = make_response(table.dump())
    response.headers.set('Content-Type', 'text/plain; charset=utf-8')
    return response


@app.route("/search/<string:strategy>/<int(signed=True):key>", methods=["GET"])
def api_search_key(strategy, key):
    _, table, _ = last_run(strategy)
    value, steps = search_by_key(table, key)
    if value is None:
        return jsonify({"found": False, "trace": steps}), 404
    return jsonify({"found": True, "trace": steps, "key": key, "value": value}), 200


def text_attachment(body, filename):
    response = make_response(body)
    response.headers.set('Content-Type', 'text/plain; charset=utf-8')
    response.headers.set('Content-Disposition', 'attachment', filename=filename)
    return response


@app.route("/download/log/<string:strategy>", methods=["GET"])
def download_log(strategy):
    result, _, source = last_run(strategy)
    collisions_name, _ = report_filenames(source, result.strategy)
    return text_attachment(render_collision_log(result), collisions_name)


@app.route("/download/tables/<string:strategy>", methods=["GET"])
def download_tables(strategy):
    result, _, source = last_run(strategy)
    _, tables_name = report_filenames(source, result.strategy)
    return text_attachment(render_tables(result), tables_name)


@app.route("/download/pdf/<string:strategy>", methods=["GET"])
def api_download_pdf(strategy):
    result, _, _ = last_run(strategy)
    response = make_response(build_pdf(result))
    response.headers.set('Content-Type', 'application/pdf')
    response.headers.set('Content-Disposition', 'attachment', filename=f'probing_{result.strategy}.pdf')
    return response


if __name__ == "__main__":
    app.run(host="0.0.0.0", port=7077, debug=True)
