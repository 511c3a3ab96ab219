from flask import Blueprint, jsonify, current_app, send_from_directory

main = Blueprint('main', __name__)


@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the tabletop map server!'})


@main.route('/health')
def health():
    return 'Ok', 200


@main.route('/uploads/<path:filename>')
def uploaded_file(filename):
    # Background images written by LocalAssetHost
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)
