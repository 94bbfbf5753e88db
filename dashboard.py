"""
Statement Import API

A Flask JSON API over the statement engine: parse a pre-decoded statement,
detect recurring payments in a list of transactions, suggest categories for
a free-text payee and export suggestions as CSV.

The API holds no state between requests; every call brings its own
transactions and, optionally, its own rule set and category tree.
"""

import csv
import io
import logging
import os
from datetime import datetime
from typing import Any, Dict, List

from flask import Flask, jsonify, request, send_file

from statement_engine.detection.recurring_detector import RecurringPaymentDetector
from statement_engine.exceptions import RuleSetLoadError, StatementDecodeError, StatementTimeoutError
from statement_engine.ingestion.document_loader import ingest_statement
from statement_engine.models import DetectionRuleSet
from statement_engine.patterns.rule_set_loader import build_rule_set, default_rule_set
from statement_engine.resolution.category_resolver import build_category_tree


app = Flask(__name__)
app.config['MAX_CONTENT_LENGTH'] = 50 * 1024 * 1024  # 50MB max request size

# Fallback rules when a request brings none
DEFAULT_RULES = default_rule_set()

EXPORT_FIELDS = [
    'payee', 'provider', 'category', 'subcategory', 'frequency', 'confidence',
    'occurrence_count', 'typical_amount', 'first_seen', 'last_seen',
    'matched_pattern', 'reason', 'category_id', 'category_name',
    'domain', 'domain_confidence', 'record_type', 'entry_title', 'entry_type',
]


def rules_from_request(data: Dict[str, Any]) -> DetectionRuleSet:
    """Rule set from the request body, or the default UK rules."""
    rules = data.get('rules')
    if rules is None:
        return DEFAULT_RULES
    return build_rule_set(rules)


def category_tree_from_request(data: Dict[str, Any]):
    categories = data.get('categories')
    if categories is None:
        return None
    if not isinstance(categories, list):
        raise ValueError("'categories' must be an array")
    return build_category_tree(categories)


@app.route('/')
def index():
    """Service description."""
    return jsonify({
        'service': 'statement-import',
        'default_rules': DEFAULT_RULES.name,
        'endpoints': [
            'POST /api/statements/parse',
            'POST /api/recurring/detect',
            'GET /api/categories/suggest?description=...',
            'POST /export/csv',
        ],
    })


@app.route('/api/statements/parse', methods=['POST'])
def parse_statement_endpoint():
    """
    Parse a pre-decoded statement page structure.

    Expects JSON body {"document": {"Pages": [...]}, "bank_hint": optional,
    "detect": optional bool}. With "detect", suggestions for the parsed
    transactions are included.
    """
    data = request.get_json(silent=True)
    if not data or not isinstance(data.get('document'), dict):
        return jsonify({'error': "No 'document' page structure provided"}), 400

    try:
        statement = ingest_statement(data['document'], bank_hint=data.get('bank_hint'))
    except StatementTimeoutError as e:
        app.logger.warning(f"Statement parse timed out: {e}")
        return jsonify({'error': str(e)}), 408
    except StatementDecodeError as e:
        app.logger.warning(f"Statement parse failed: {e}")
        return jsonify({'error': str(e)}), 422

    response = statement.to_dict()
    if data.get('detect'):
        try:
            detector = RecurringPaymentDetector(rules_from_request(data))
        except RuleSetLoadError as e:
            return jsonify({'error': f'Invalid rules: {e}'}), 400
        response['suggestions'] = [s.to_dict() for s in detector.detect(statement.transactions)]

    app.logger.info(f"Parsed statement: {len(statement.transactions)} transactions ({statement.bank})")
    return jsonify(response)


@app.route('/api/recurring/detect', methods=['POST'])
def detect_recurring_endpoint():
    """
    Detect recurring payments in a list of transactions.

    Expects JSON body with 'transactions'. Optional 'rules' (rule-set
    document), 'categories' (category tree) and 'mode': 'live' (default,
    top suggestions only) or 'bulk' (everything).
    """
    data = request.get_json(silent=True)
    if not data or 'transactions' not in data:
        return jsonify({'error': 'No transactions provided'}), 400

    transactions = data['transactions']
    if not isinstance(transactions, list):
        return jsonify({'error': 'Transactions must be an array'}), 400

    mode = data.get('mode', 'live')
    if mode not in ('live', 'bulk'):
        return jsonify({'error': "Mode must be 'live' or 'bulk'"}), 400

    try:
        detector = RecurringPaymentDetector(rules_from_request(data), category_tree_from_request(data))
    except (RuleSetLoadError, ValueError) as e:
        return jsonify({'error': f'Invalid request: {e}'}), 400

    limit = detector.config['live_suggestion_limit'] if mode == 'live' else None
    suggestions = detector.detect(transactions, limit=limit)

    return jsonify({
        'success': True,
        'mode': mode,
        'total_transactions': len(transactions),
        'suggestions': [s.to_dict() for s in suggestions],
    })


@app.route('/api/categories/suggest', methods=['GET'])
def suggest_categories_endpoint():
    """Category suggestions for a free-text payee, using the default rules."""
    description = (request.args.get('description') or '').strip()
    if not description:
        return jsonify({'error': 'Description is required'}), 400

    detector = RecurringPaymentDetector(DEFAULT_RULES)
    suggestions = detector.suggest_categories(description)

    return jsonify({
        'success': True,
        'description': description,
        'suggestions': [s.to_dict() for s in suggestions],
    })


@app.route('/export/csv', methods=['POST'])
def export_csv():
    """
    Export recurring suggestions to CSV format.

    Expects JSON body with 'results' field containing suggestion dicts.
    """
    data = request.get_json(silent=True)

    if not data or 'results' not in data:
        app.logger.warning("CSV export: No results provided in request")
        return jsonify({'error': 'No results provided'}), 400

    results: List[Dict] = data['results']
    if not isinstance(results, list):
        app.logger.error(f"CSV export: Results is not a list, got {type(results)}")
        return jsonify({'error': 'Results must be an array'}), 400

    output = io.StringIO()
    writer = csv.DictWriter(output, fieldnames=EXPORT_FIELDS, restval='', extrasaction='ignore')
    writer.writeheader()
    for result in results:
        if isinstance(result, dict):
            writer.writerow(result)

    csv_data = output.getvalue().encode('utf-8')
    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')
    filename = f'recurring_suggestions_{timestamp}.csv'

    app.logger.info(f"CSV export: Successfully exported {len(results)} results")

    return send_file(
        io.BytesIO(csv_data),
        mimetype='text/csv',
        as_attachment=True,
        download_name=filename
    )


if __name__ == '__main__':
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    # Debug mode is controlled by environment variable
    debug_mode = os.environ.get('FLASK_DEBUG', '0') == '1'
    app.run(debug=debug_mode, port=5001, host='0.0.0.0')
