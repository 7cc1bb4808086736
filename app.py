"""
Flask Web Application for the Questionnaire Rules Engine

JSON API that validates a journey page: the caller posts the question set
and the current answers, and gets back per-question applicability and
field failures ready to attach to form error state.
"""

from flask import Flask, request, jsonify
import logging
import os

from rules_engine.config import EngineSettings
from rules_engine.core.applicability_evaluator import (
    ApplicabilityEvaluator,
    reset_inapplicable_answers,
)
from rules_engine.core.journey_validator import JourneyValidator
from rules_engine.core.rule_graph_assembler import RuleGraphAssembler

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Initialize Flask app
app = Flask(__name__)
app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'rules-engine-dev-secret-key')

# Engine modules are stateless, so one instance serves every request
settings = EngineSettings.from_env()
assembler = RuleGraphAssembler()
validator = JourneyValidator(settings)


def _read_journey():
    """Assemble the question graph from the request body."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")

    question_set = data.get('question_set')
    if question_set is None:
        raise ValueError("Missing 'question_set'")

    return assembler.assemble(question_set, data.get('answers') or {})


@app.route('/api/health', methods=['GET'])
def health():
    """Liveness probe"""
    return jsonify({
        'success': True,
        'status': 'ok'
    })


@app.route('/api/validate', methods=['POST'])
def validate_journey():
    """Validate all questions of a journey page"""
    try:
        graph = _read_journey()
        result = validator.validate(graph)

        response = {'success': True}
        response.update(result.to_json())
        return jsonify(response)

    except ValueError as e:
        logger.warning(f"Rejected validation request: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400

    except Exception as e:
        logger.error(f"Error validating journey: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


@app.route('/api/applicability', methods=['POST'])
def journey_applicability():
    """Report which questions are in play and which answers must be reset"""
    try:
        graph = _read_journey()

        # Clearing a parent can close its children's gates
        settled = reset_inapplicable_answers(graph, settings)
        evaluator = ApplicabilityEvaluator(settled, settings)

        applicability = {}
        reset_ids = []
        for question in settled:
            applicability[question.question_id] = evaluator.is_applicable(question)
            if question != graph.get(question.question_id):
                reset_ids.append(question.question_id)

        return jsonify({
            'success': True,
            'applicability': applicability,
            'reset_question_ids': reset_ids
        })

    except ValueError as e:
        logger.warning(f"Rejected applicability request: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 400

    except Exception as e:
        logger.error(f"Error evaluating applicability: {e}")
        return jsonify({
            'success': False,
            'error': str(e)
        }), 500


if __name__ == '__main__':
    print("\n" + "="*60)
    print("QUESTIONNAIRE RULES ENGINE - JSON API")
    print("="*60)
    print("\nServer starting...")
    print("POST question sets to: http://localhost:5000/api/validate")
    print("\nPress Ctrl+C to stop the server")
    print("="*60 + "\n")

    app.run(debug=False, host='0.0.0.0', port=int(os.environ.get('PORT', 5000)))
