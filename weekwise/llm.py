import json
import logging

import openai
import requests
from openai import OpenAI

from weekwise.config import LLM_TIMEOUT, get_llm_config
from weekwise.errors import ConfigurationError, LLMResponseError

logger = logging.getLogger(__name__)

ANTHROPIC_MESSAGES_URL = 'https://api.anthropic.com/v1/messages'
ANTHROPIC_VERSION = '2023-06-01'

SYSTEM_PROMPT = 'You are a helpful assistant that outputs only valid JSON.'


# ----------------------------------------------
# Provider calls
# ----------------------------------------------

def call_openai(prompt, config):
    """Send the prompt to the OpenAI chat completions API and return the reply text."""
    if not config['openai_api_key']:
        raise ConfigurationError("OPENAI_API_KEY environment variable is not set. Cannot generate a response.")

    client = OpenAI(api_key=config['openai_api_key'], timeout=LLM_TIMEOUT)
    logger.info(f"Calling OpenAI API with model: {config['model']}")
    try:
        response = client.chat.completions.create(
            model=config['model'],
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt}
            ],
            temperature=config['temperature'],
            max_tokens=config['max_tokens'],
            response_format={"type": "json_object"},
        )
    except openai.OpenAIError as e:
        logger.error(f"OpenAI API error: {str(e)}")
        raise LLMResponseError(f"OpenAI API error: {str(e)}")

    if not response.choices:
        raise LLMResponseError("No response from OpenAI")
    return response.choices[0].message.content or ''


def call_anthropic(prompt, config):
    """Send the prompt to the Anthropic Messages API and return the reply text."""
    if not config['anthropic_api_key']:
        raise ConfigurationError("ANTHROPIC_API_KEY environment variable is not set. Cannot generate a response.")

    logger.info(f"Calling Anthropic API with model: {config['model']}")
    headers = {
        "x-api-key": config['anthropic_api_key'],
        "anthropic-version": ANTHROPIC_VERSION,
        "content-type": "application/json"
    }
    payload = {
        "model": config['model'],
        "system": SYSTEM_PROMPT,
        "messages": [
            {"role": "user", "content": prompt}
        ],
        "max_tokens": config['max_tokens'],
        "temperature": config['temperature']
    }
    try:
        response = requests.post(ANTHROPIC_MESSAGES_URL, headers=headers, json=payload, timeout=LLM_TIMEOUT)
    except requests.exceptions.RequestException as e:
        logger.error(f"Error calling Anthropic API: {str(e)}")
        raise LLMResponseError(f"Error calling Anthropic API: {str(e)}")

    if response.status_code != 200:
        logger.error(f"Anthropic API error: {response.status_code} - {response.text}")
        raise LLMResponseError(f"Anthropic API returned error: {response.status_code} - {response.text}")

    content_list = response.json().get('content', [])
    if not content_list or not isinstance(content_list, list):
        raise LLMResponseError("Invalid response format from Anthropic API")
    return ''.join(block.get('text', '') for block in content_list if block.get('type', 'text') == 'text')


PROVIDERS = {
    'openai': call_openai,
    'anthropic': call_anthropic,
}


# ----------------------------------------------
# Reply parsing
# ----------------------------------------------

def extract_json(text):
    """
    Pull the outermost JSON object out of an LLM reply.

    Models sometimes wrap the object in prose or a ```json fence, so parse the
    span between the first '{' and the last '}'.
    """
    json_start = text.find('{')
    json_end = text.rfind('}') + 1
    if json_start < 0 or json_end <= json_start:
        raise LLMResponseError("Could not find JSON in LLM response")
    try:
        return json.loads(text[json_start:json_end])
    except json.JSONDecodeError as e:
        logger.warning(f"Failed to parse LLM response as JSON: {e}")
        raise LLMResponseError(f"LLM response was not valid JSON: {e}")


def generate_json(prompt):
    """Send `prompt` to the configured provider and return the decoded JSON object."""
    config = get_llm_config()
    call = PROVIDERS.get(config['provider'])
    if call is None:
        raise ConfigurationError(
            f"Unknown LLM_PROVIDER '{config['provider']}'. Expected one of: {', '.join(PROVIDERS)}.")

    logger.debug(f"Sending prompt of length {len(prompt)} to {config['provider']}")
    text = call(prompt, config)
    if not text:
        raise LLMResponseError("Empty response from the LLM")
    logger.debug(f"LLM response content: {text}")
    return extract_json(text)
