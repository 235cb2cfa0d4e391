"""Tests for template rendering."""

from pathlib import Path

import pytest

from swagger2tests.config import GenerationConfig
from swagger2tests.errors import ResourceError
from swagger2tests.generator import TestGenerator
from swagger2tests.parser import SwaggerParser
from swagger2tests.renderer import TemplateRenderer, js_quote, pathify

FIXTURES = Path(__file__).parent / "fixtures"


def _files(config=None):
    doc = SwaggerParser().parse(FIXTURES / "petstore.yaml")
    result = TestGenerator(config).generate(doc)
    return {f.name: f.test for f in result.files}


class TestFilters:
    """Tests for the template filters."""

    def test_pathify(self):
        assert pathify("/pets/{petId}/toys/{toyId}") == (
            "/pets/{petId PARAM GOES HERE}/toys/{toyId PARAM GOES HERE}"
        )

    def test_pathify_without_parameters(self):
        assert pathify("/pets") == "/pets"

    def test_pathify_requires_string(self):
        with pytest.raises(TypeError):
            pathify(42)

    def test_js_quote(self):
        assert js_quote("it's") == "it\\'s"


class TestTemplateRenderer:
    """Tests for the bundled templates."""

    def test_missing_templates_raise_resource_error(self, tmp_path):
        with pytest.raises(ResourceError):
            TemplateRenderer("supertest", templates_dir=tmp_path)

    def test_custom_templates_dir_must_hold_every_template(self, tmp_path):
        with pytest.raises(ResourceError):
            TestGenerator(renderer=TemplateRenderer("request", templates_dir=tmp_path))

    def test_environment(self):
        renderer = TemplateRenderer("supertest")

        text = renderer.render_environment({"envVars": ["API_KEY", "PETSTORE_AUTH"]})

        assert text.splitlines() == ["API_KEY=", "PETSTORE_AUTH="]

    def test_supertest_file(self):
        files = _files()

        pets = files["pets-test.js"]
        assert "var api = supertest('https://petstore.swagger.io');" in pets
        assert "describe('/pets', function() {" in pets
        assert "describe('get', function() {" in pets
        assert "api.get('/v2/pets?limit=DATA&tags=DATA')" in pets
        assert ".set('Authorization', 'Bearer ' + process.env.PETSTORE_AUTH)" in pets
        assert ".expect(201)" in pets
        assert "require('z-schema')" in pets
        assert "require('dotenv').load();" in pets
        assert "validator.validate(res.body, schema).should.be.true;" in pets

    def test_supertest_send_body(self):
        pets = _files()["pets-test.js"]

        assert ".send({" in pets
        assert "'body': 'BODY DATA GOES HERE'" in pets

    def test_path_parameters_are_marked(self):
        pet = _files()["pets-petId-test.js"]

        assert "api.get('/v2/pets/{petId PARAM GOES HERE}')" in pet
        assert "api.del('/v2/pets/{petId PARAM GOES HERE}')" in pet
        assert ".set('api_key', process.env.API_KEY)" in pet
        assert ".set('X-Request-Id', 'X-REQUEST-ID DATA GOES HERE')" in pet

    def test_root_file_has_no_validator(self):
        root = _files()["base-path-test.js"]

        assert "z-schema" not in root
        assert "dotenv" not in root
        assert ".set('Accept', 'text/plain')" in root

    def test_request_module(self):
        config = GenerationConfig(test_module="request", assertion_format="expect")
        pets = _files(config)["pets-test.js"]

        assert "var request = require('request');" in pets
        assert "url: 'https://petstore.swagger.io/v2/pets'," in pets
        assert "'limit': 'LIMIT DATA GOES HERE'," in pets
        assert "method: 'POST'," in pets
        assert "json: {" in pets
        assert "expect(res.statusCode).to.equal(200);" in pets
        assert "var expect = chai.expect;" in pets

    def test_assert_format(self):
        config = GenerationConfig(assertion_format="assert")
        pets = _files(config)["pets-test.js"]

        assert "var assert = chai.assert;" in pets
        assert "assert.true(validator.validate(res.body, schema));" in pets

    def test_default_response_has_no_status_check(self):
        pets = _files()["pets-test.js"]

        assert "expect(default)" not in pets
        assert "should respond with default unexpected error" in pets

    def test_schema_is_embedded(self):
        pet = _files()["pets-petId-test.js"]

        assert "var schema = {" in pet
        assert '"required": [' in pet

    def test_env_file(self):
        env = _files()[".env"]

        assert env.splitlines() == ["PETSTORE_AUTH=", "API_KEY="]

    @pytest.mark.parametrize("test_module", ["supertest", "request"])
    def test_api_key_names_are_quoted(self, test_module):
        doc = SwaggerParser().parse_document({
            "securityDefinitions": {"key": {"type": "apiKey", "in": "header", "name": "X-Pet's-Key"}},
            "paths": {"/pets": {"get": {
                "security": [{"key": []}],
                "responses": {"200": {"description": "ok"}},
            }}},
        })

        result = TestGenerator(GenerationConfig(test_module=test_module)).generate(doc)

        assert "'X-Pet\\'s-Key'" in result.files[0].test
