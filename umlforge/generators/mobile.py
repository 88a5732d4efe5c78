# File: umlforge/generators/mobile.py
"""
NexaFlow UMLForge - Mobile Generator (Flutter)
===============================================
Renders a Flutter client for the generated backend: ``provider`` for state,
``dio`` for HTTP, ``go_router`` for navigation.

Per entity: model (``fromJson`` / ``toJson`` / ``copyWith``), service,
provider, list screen and form screen. Reference ids travel as ``int?``
under the same JSON keys the backend DTOs use; owned collections arrive as
``List<int>?`` id lists and are read-only on the client.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from umlforge.generators.base import (
    ArtifactGenerator,
    inheritance_key,
    json_key,
    reference_route,
    resource_path,
)
from umlforge.models import AttributeSpec, ClassEntity, TargetKind, Visibility
from umlforge.naming import (
    class_identifier,
    dart_field_name,
    table_singular,
    to_pascal_case,
    to_snake_case,
    to_title_human,
    url_segment,
)
from umlforge.utils import indent_lines

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("umlforge.generators.mobile")

_DEPENDENCIES: Dict[str, str] = {
    "provider": "^6.1.1",
    "dio": "^5.4.0",
    "go_router": "^13.0.0",
    "shared_preferences": "^2.2.2",
    "cupertino_icons": "^1.0.6",
}

_KEYBOARD_TYPES: Dict[str, str] = {
    "int": "TextInputType.number",
    "double": "const TextInputType.numberWithOptions(decimal: true)",
    "DateTime": "TextInputType.datetime",
}


@dataclass(frozen=True, slots=True)
class _DartField:
    """One model field: Dart name, wire key and type."""

    name: str
    key: str
    dart_type: str
    editable: bool = True
    required: bool = False
    label: str = ""

    @property
    def form_supported(self) -> bool:
        return self.editable and self.dart_type in ("String", "int", "double", "bool", "DateTime")


def _from_json(field: _DartField) -> str:
    source: str = f"json['{field.key}']"
    if field.dart_type == "int":
        return f"({source} as num?)?.toInt()"
    if field.dart_type == "double":
        return f"({source} as num?)?.toDouble()"
    if field.dart_type == "DateTime":
        return f"{source} != null ? DateTime.tryParse({source}.toString()) : null"
    if field.dart_type == "List<int>":
        return f"({source} as List<dynamic>?)?.map((e) => (e as num).toInt()).toList()"
    if field.dart_type == "String":
        return f"{source}?.toString()"
    return f"{source} as {field.dart_type}?"


def _to_json(field: _DartField) -> str:
    if field.dart_type == "DateTime":
        return f"'{field.key}': {field.name}?.toIso8601String(),"
    return f"'{field.key}': {field.name},"


class MobileGenerator(ArtifactGenerator):
    """Flutter 3 project consuming the generated REST API."""

    target = TargetKind.MOBILE

    @property
    def dart_package(self) -> str:
        return to_snake_case(self.config.project_name) or "uml_app"

    def archive_name(self) -> Optional[str]:
        return f"{self.config.project_name}_flutter.zip"

    def generate(self) -> Dict[str, str]:
        entities: List[ClassEntity] = list(self.context.entities)
        needs_auth: bool = self.context.user_entity is not None
        files: Dict[str, str] = {
            "pubspec.yaml": self._pubspec(),
            "analysis_options.yaml": "include: package:flutter_lints/flutter.yaml\n",
            "README.md": self._readme(entities),
            "lib/main.dart": self._main(),
            "lib/app.dart": self._app(entities, needs_auth),
            "lib/config/routes.dart": self._routes(entities, needs_auth),
            "lib/config/api_config.dart": self._api_config(entities),
            "lib/config/theme.dart": self._theme(),
            "lib/services/api_service.dart": self._api_service(),
            "lib/screens/home/home_screen.dart": self._home_screen(entities, needs_auth),
            "lib/widgets/common/loading_widget.dart": self._loading_widget(),
            "lib/widgets/common/error_widget.dart": self._error_widget(),
            "lib/widgets/common/custom_text_field.dart": self._custom_text_field(),
        }
        for cls in entities:
            stem: str = table_singular(cls.name)
            fields: List[_DartField] = self._fields(cls)
            files[f"lib/models/{stem}_model.dart"] = self._model(cls, fields)
            files[f"lib/services/{stem}_service.dart"] = self._service(cls)
            files[f"lib/providers/{stem}_provider.dart"] = self._provider(cls)
            files[f"lib/screens/entities/{stem}_list_screen.dart"] = self._list_screen(cls, fields)
            files[f"lib/screens/entities/{stem}_form_screen.dart"] = self._form_screen(cls, fields)

        if needs_auth:
            files["lib/services/auth_service.dart"] = self._auth_service()
            files["lib/providers/auth_provider.dart"] = self._auth_provider()
            files["lib/screens/auth/login_screen.dart"] = self._login_screen()
            files["lib/screens/auth/register_screen.dart"] = self._register_screen()

        files.update(self._android_files())
        logger.info("Mobile: %d files for %d entities.", len(files), len(entities))
        return files

    # -- Field model -----------------------------------------------------

    def _fields(self, cls: ClassEntity) -> List[_DartField]:
        fields: List[_DartField] = [_DartField("id", "id", "int", editable=False)]
        parent: Optional[str] = self.resolved.parent_of(cls.name)
        if parent is not None:
            _base, id_field, _column = inheritance_key(parent)
            fields.append(
                _DartField(
                    dart_field_name(id_field),
                    json_key(id_field),
                    "int",
                    required=True,
                    label=f"{parent} ID",
                )
            )
        for attribute in self.persisted(cls):
            if attribute.type_name in self.ir.class_index:
                continue
            fields.append(self._attribute_field(attribute))
        for fk in self.resolved.references_for(cls.name):
            fields.append(
                _DartField(
                    dart_field_name(fk.field_name),
                    json_key(fk.field_name),
                    "int",
                    required=fk.required,
                    label=f"{fk.related_class} ID",
                )
            )
        for fk in self.resolved.collections_for(cls.name):
            fields.append(
                _DartField(
                    dart_field_name(fk.field_name),
                    json_key(fk.field_name),
                    "List<int>",
                    editable=False,
                )
            )
        fields.append(_DartField("createdAt", "createdAt", "DateTime", editable=False))
        fields.append(_DartField("updatedAt", "updatedAt", "DateTime", editable=False))
        return fields

    def _attribute_field(self, attribute: AttributeSpec) -> _DartField:
        return _DartField(
            dart_field_name(attribute.name),
            json_key(attribute.name),
            self.mapper.dart(attribute.type_name),
            required=attribute.visibility == Visibility.PRIVATE,
            label=to_title_human(attribute.name),
        )

    # -- Project files ---------------------------------------------------

    def _pubspec(self) -> str:
        lines: List[str] = [
            f"name: {self.dart_package}",
            f"description: {self.config.description}",
            "publish_to: 'none'",
            f"version: {self.config.project_version}+1",
            "",
            "environment:",
            "  sdk: '>=3.0.0 <4.0.0'",
            "",
            "dependencies:",
            "  flutter:",
            "    sdk: flutter",
        ]
        lines.extend(f"  {name}: {version}" for name, version in _DEPENDENCIES.items())
        lines.extend(
            [
                "",
                "dev_dependencies:",
                "  flutter_test:",
                "    sdk: flutter",
                "  flutter_lints: ^3.0.1",
                "",
                "flutter:",
                "  uses-material-design: true",
                "",
            ]
        )
        return "\n".join(lines)

    def _readme(self, entities: List[ClassEntity]) -> str:
        lines: List[str] = [
            f"# {self.config.project_name} (Flutter)",
            "",
            f"Mobile client generated from the UML diagram \"{self.ir.title}\".",
            "",
            "```bash",
            "flutter pub get",
            "flutter run",
            "```",
            "",
            f"The Android emulator reaches the backend at `http://{self.config.mobile_api_host}`; "
            "edit `lib/config/api_config.dart` for other hosts.",
            "",
            "## Screens",
            "",
        ]
        lines.extend(f"- `/{url_segment(c.name)}`: {c.name}" for c in entities)
        if self.resolved.joins:
            lines.extend(["", "## Many-to-many associations", ""])
            lines.extend(
                f"- {j.left_class} and {j.right_class}: join table `{j.name}` "
                f"({to_pascal_case(j.name)}), not exposed as a model field."
                for j in self.resolved.joins
            )
        lines.append("")
        return "\n".join(lines)

    def _main(self) -> str:
        return "\n".join(
            [
                "import 'package:flutter/material.dart';",
                "",
                "import 'app.dart';",
                "import 'services/api_service.dart';",
                "",
                "void main() {",
                "  WidgetsFlutterBinding.ensureInitialized();",
                "  ApiService().initialize();",
                "  runApp(const App());",
                "}",
                "",
            ]
        )

    def _app(self, entities: List[ClassEntity], needs_auth: bool) -> str:
        imports: List[str] = [
            "import 'package:flutter/material.dart';",
            "import 'package:provider/provider.dart';",
            "",
            "import 'config/routes.dart';",
            "import 'config/theme.dart';",
        ]
        providers: List[str] = []
        if needs_auth:
            imports.append("import 'providers/auth_provider.dart';")
            providers.append("ChangeNotifierProvider(create: (_) => AuthProvider()..restore()),")
        for cls in entities:
            imports.append(f"import 'providers/{table_singular(cls.name)}_provider.dart';")
            providers.append(
                f"ChangeNotifierProvider(create: (_) => {class_identifier(cls.name)}Provider()),"
            )
        lines: List[str] = imports + [
            "",
            "class App extends StatelessWidget {",
            "  const App({super.key});",
            "",
            "  @override",
            "  Widget build(BuildContext context) {",
            "    return MultiProvider(",
            "      providers: [",
        ]
        lines.extend(indent_lines(providers, level=4, size=2))
        lines.extend(
            [
                "      ],",
                "      child: MaterialApp.router(",
                f"        title: '{_dart_text(self.config.project_name)}',",
                "        debugShowCheckedModeBanner: false,",
                "        theme: AppTheme.lightTheme,",
                "        darkTheme: AppTheme.darkTheme,",
                "        routerConfig: appRouter,",
                "      ),",
                "    );",
                "  }",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    def _routes(self, entities: List[ClassEntity], needs_auth: bool) -> str:
        imports: List[str] = [
            "import 'package:go_router/go_router.dart';",
            "",
            "import '../screens/home/home_screen.dart';",
        ]
        routes: List[str] = [
            "GoRoute(path: '/', builder: (context, state) => const HomeScreen()),",
        ]
        if needs_auth:
            imports.extend(
                [
                    "import '../screens/auth/login_screen.dart';",
                    "import '../screens/auth/register_screen.dart';",
                ]
            )
            routes.extend(
                [
                    "GoRoute(path: '/login', builder: (context, state) => const LoginScreen()),",
                    "GoRoute(path: '/register', builder: (context, state) => const RegisterScreen()),",
                ]
            )
        for cls in entities:
            name: str = class_identifier(cls.name)
            stem: str = table_singular(cls.name)
            imports.append(f"import '../screens/entities/{stem}_list_screen.dart';")
            imports.append(f"import '../screens/entities/{stem}_form_screen.dart';")
            routes.extend(
                [
                    "GoRoute(",
                    f"  path: '/{url_segment(cls.name)}',",
                    f"  builder: (context, state) => const {name}ListScreen(),",
                    "  routes: [",
                    f"    GoRoute(path: 'new', builder: (context, state) => const {name}FormScreen()),",
                    "    GoRoute(",
                    "      path: ':id/edit',",
                    f"      builder: (context, state) => {name}FormScreen(",
                    "        id: int.tryParse(state.pathParameters['id'] ?? ''),",
                    "      ),",
                    "    ),",
                    "  ],",
                    "),",
                ]
            )
        lines: List[str] = imports + [
            "",
            "final GoRouter appRouter = GoRouter(",
            f"  initialLocation: '{'/login' if needs_auth else '/'}',",
            "  routes: [",
        ]
        lines.extend(indent_lines(routes, level=2, size=2))
        lines.extend(["  ],", ");", ""])
        return "\n".join(lines)

    def _api_config(self, entities: List[ClassEntity]) -> str:
        lines: List[str] = [
            "import 'package:flutter/foundation.dart' show kIsWeb;",
            "",
            "class ApiConfig {",
            "  static String get baseUrl {",
            "    if (kIsWeb) {",
            f"      return '{self.config.base_url}/api';",
            "    }",
            "    // Android emulator alias for the host machine.",
            f"    return 'http://{self.config.mobile_api_host}/api';",
            "  }",
            "",
            "  static const String login = '/auth/login';",
            "  static const String register = '/auth/register';",
            "  static const String validate = '/auth/validate';",
            "",
        ]
        for cls in entities:
            lines.append(
                f"  static const String {self._endpoint_name(cls)} = '/{url_segment(cls.name)}';"
            )
        lines.extend(
            [
                "",
                "  static const Duration connectTimeout = Duration(seconds: 30);",
                "  static const Duration receiveTimeout = Duration(seconds: 30);",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    @staticmethod
    def _endpoint_name(cls: ClassEntity) -> str:
        return dart_field_name(url_segment(cls.name))

    @staticmethod
    def _theme() -> str:
        return "\n".join(
            [
                "import 'package:flutter/material.dart';",
                "",
                "class AppTheme {",
                "  static const Color primaryColor = Color(0xFF2196F3);",
                "",
                "  static ThemeData get lightTheme => ThemeData(",
                "        useMaterial3: true,",
                "        colorScheme: ColorScheme.fromSeed(seedColor: primaryColor),",
                "        appBarTheme: const AppBarTheme(centerTitle: true),",
                "        inputDecorationTheme: InputDecorationTheme(",
                "          border: OutlineInputBorder(borderRadius: BorderRadius.circular(12)),",
                "        ),",
                "      );",
                "",
                "  static ThemeData get darkTheme => ThemeData(",
                "        useMaterial3: true,",
                "        colorScheme: ColorScheme.fromSeed(",
                "          seedColor: primaryColor,",
                "          brightness: Brightness.dark,",
                "        ),",
                "      );",
                "}",
                "",
            ]
        )

    # -- Services --------------------------------------------------------

    @staticmethod
    def _api_service() -> str:
        return "\n".join(
            [
                "import 'package:dio/dio.dart';",
                "",
                "import '../config/api_config.dart';",
                "",
                "class ApiException implements Exception {",
                "  final String message;",
                "  final int? statusCode;",
                "",
                "  ApiException(this.message, {this.statusCode});",
                "",
                "  factory ApiException.fromDio(DioException error) {",
                "    final data = error.response?.data;",
                "    final message = data is Map && data['message'] != null",
                "        ? data['message'].toString()",
                "        : (error.message ?? 'Network error');",
                "    return ApiException(message, statusCode: error.response?.statusCode);",
                "  }",
                "",
                "  @override",
                "  String toString() => message;",
                "}",
                "",
                "class ApiService {",
                "  static final ApiService _instance = ApiService._internal();",
                "  factory ApiService() => _instance;",
                "  ApiService._internal();",
                "",
                "  late final Dio dio;",
                "",
                "  void initialize() {",
                "    dio = Dio(BaseOptions(",
                "      baseUrl: ApiConfig.baseUrl,",
                "      connectTimeout: ApiConfig.connectTimeout,",
                "      receiveTimeout: ApiConfig.receiveTimeout,",
                "      headers: {'Content-Type': 'application/json', 'Accept': 'application/json'},",
                "    ));",
                "  }",
                "",
                "  void setAuthToken(String token) {",
                "    dio.options.headers['Authorization'] = 'Bearer $token';",
                "  }",
                "",
                "  void clearAuthToken() {",
                "    dio.options.headers.remove('Authorization');",
                "  }",
                "}",
                "",
            ]
        )

    def _service(self, cls: ClassEntity) -> str:
        name: str = class_identifier(cls.name)
        stem: str = table_singular(cls.name)
        endpoint: str = f"ApiConfig.{self._endpoint_name(cls)}"
        lines: List[str] = [
            "import 'package:dio/dio.dart';",
            "",
            "import '../config/api_config.dart';",
            f"import '../models/{stem}_model.dart';",
            "import 'api_service.dart';",
            "",
            f"class {name}Service {{",
            "  Dio get _dio => ApiService().dio;",
            "",
            f"  Future<List<{name}>> getAll() => _list({endpoint});",
            "",
            f"  Future<{name}> getById(int id) async {{",
            "    try {",
            f"      final response = await _dio.get('${{{endpoint}}}/$id');",
            f"      return {name}.fromJson(response.data as Map<String, dynamic>);",
            "    } on DioException catch (e) {",
            "      throw ApiException.fromDio(e);",
            "    }",
            "  }",
            "",
        ]
        for fk in self.resolved.references_for(cls.name):
            id_name: str = dart_field_name(fk.field_name)
            method: str = "getBy" + id_name[:1].upper() + id_name[1:]
            lines.extend(
                [
                    f"  Future<List<{name}>> {method}(int {id_name}) =>",
                    f"      _list('${{{endpoint}}}/{reference_route(fk.base_name)}/${id_name}');",
                    "",
                ]
            )
        lines.extend(
            [
                f"  Future<{name}> create({name} item) async {{",
                "    try {",
                f"      final response = await _dio.post({endpoint}, data: item.toJson());",
                f"      return {name}.fromJson(response.data as Map<String, dynamic>);",
                "    } on DioException catch (e) {",
                "      throw ApiException.fromDio(e);",
                "    }",
                "  }",
                "",
                f"  Future<{name}> update(int id, {name} item) async {{",
                "    try {",
                f"      final response = await _dio.put('${{{endpoint}}}/$id', data: item.toJson());",
                f"      return {name}.fromJson(response.data as Map<String, dynamic>);",
                "    } on DioException catch (e) {",
                "      throw ApiException.fromDio(e);",
                "    }",
                "  }",
                "",
                "  Future<void> delete(int id) async {",
                "    try {",
                f"      await _dio.delete('${{{endpoint}}}/$id');",
                "    } on DioException catch (e) {",
                "      throw ApiException.fromDio(e);",
                "    }",
                "  }",
                "",
                f"  Future<List<{name}>> _list(String path) async {{",
                "    try {",
                "      final response = await _dio.get(path);",
                "      final data = response.data as List<dynamic>;",
                f"      return data.map((e) => {name}.fromJson(e as Map<String, dynamic>)).toList();",
                "    } on DioException catch (e) {",
                "      throw ApiException.fromDio(e);",
                "    }",
                "  }",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    # -- Models ----------------------------------------------------------

    def _model(self, cls: ClassEntity, fields: List[_DartField]) -> str:
        name: str = class_identifier(cls.name)
        lines: List[str] = [f"/// {cls.name} as exchanged with `{resource_path(cls.name)}`."]
        for join in self.resolved.joins_for(cls.name):
            other: str = join.right_class if join.left_class == cls.name else join.left_class
            lines.append(
                f"/// Many-to-many with {other} through join table `{join.name}` "
                f"({to_pascal_case(join.name)}); no id field here links them."
            )
        lines.extend(["", f"class {name} {{"])
        lines.extend(f"  final {f.dart_type}? {f.name};" for f in fields)
        lines.extend(["", f"  const {name}({{"])
        lines.extend(f"    this.{f.name}," for f in fields)
        lines.extend(
            [
                "  });",
                "",
                f"  factory {name}.fromJson(Map<String, dynamic> json) {{",
                f"    return {name}(",
            ]
        )
        lines.extend(f"      {f.name}: {_from_json(f)}," for f in fields)
        lines.extend(
            [
                "    );",
                "  }",
                "",
                "  Map<String, dynamic> toJson() {",
                "    return {",
                "      if (id != null) 'id': id,",
            ]
        )
        lines.extend(f"      {_to_json(f)}" for f in fields if f.editable)
        lines.extend(["    };", "  }", "", f"  {name} copyWith({{"])
        lines.extend(f"    {f.dart_type}? {f.name}," for f in fields)
        lines.extend(["  }) {", f"    return {name}("])
        lines.extend(f"      {f.name}: {f.name} ?? this.{f.name}," for f in fields)
        lines.extend(
            [
                "    );",
                "  }",
                "",
                "  @override",
                f"  String toString() => '{name}(id: $id)';",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    # -- Providers -------------------------------------------------------

    def _provider(self, cls: ClassEntity) -> str:
        name: str = class_identifier(cls.name)
        stem: str = table_singular(cls.name)
        return "\n".join(
            [
                "import 'package:flutter/foundation.dart';",
                "",
                f"import '../models/{stem}_model.dart';",
                f"import '../services/{stem}_service.dart';",
                "",
                f"class {name}Provider with ChangeNotifier {{",
                f"  final {name}Service _service = {name}Service();",
                "",
                f"  List<{name}> _items = [];",
                "  bool _isLoading = false;",
                "  String? _error;",
                "",
                f"  List<{name}> get items => _items;",
                "  bool get isLoading => _isLoading;",
                "  String? get error => _error;",
                "",
                "  Future<void> loadAll() async {",
                "    _isLoading = true;",
                "    _error = null;",
                "    notifyListeners();",
                "    try {",
                "      _items = await _service.getAll();",
                "    } catch (e) {",
                "      _error = e.toString();",
                "    } finally {",
                "      _isLoading = false;",
                "      notifyListeners();",
                "    }",
                "  }",
                "",
                f"  Future<{name}> getById(int id) => _service.getById(id);",
                "",
                f"  Future<void> save({name} item) async {{",
                "    if (item.id == null) {",
                "      _items.add(await _service.create(item));",
                "    } else {",
                "      final updated = await _service.update(item.id!, item);",
                "      final index = _items.indexWhere((e) => e.id == item.id);",
                "      if (index != -1) {",
                "        _items[index] = updated;",
                "      }",
                "    }",
                "    notifyListeners();",
                "  }",
                "",
                "  Future<void> delete(int id) async {",
                "    await _service.delete(id);",
                "    _items.removeWhere((e) => e.id == id);",
                "    notifyListeners();",
                "  }",
                "}",
                "",
            ]
        )

    # -- Screens ---------------------------------------------------------

    def _home_screen(self, entities: List[ClassEntity], needs_auth: bool) -> str:
        imports: List[str] = [
            "import 'package:flutter/material.dart';",
            "import 'package:go_router/go_router.dart';",
        ]
        if needs_auth:
            imports.extend(
                [
                    "import 'package:provider/provider.dart';",
                    "",
                    "import '../../providers/auth_provider.dart';",
                ]
            )
        tiles: List[str] = []
        for cls in entities:
            tiles.extend(
                [
                    "Card(",
                    "  child: InkWell(",
                    f"    onTap: () => context.push('/{url_segment(cls.name)}'),",
                    "    child: Center(",
                    f"      child: Text('{_dart_text(to_title_human(cls.name))}',",
                    "          style: Theme.of(context).textTheme.titleMedium),",
                    "    ),",
                    "  ),",
                    "),",
                ]
            )
        actions: List[str] = []
        if needs_auth:
            actions = [
                "actions: [",
                "  IconButton(",
                "    icon: const Icon(Icons.logout),",
                "    onPressed: () async {",
                "      await context.read<AuthProvider>().logout();",
                "      if (context.mounted) context.go('/login');",
                "    },",
                "  ),",
                "],",
            ]
        lines: List[str] = imports + [
            "",
            "class HomeScreen extends StatelessWidget {",
            "  const HomeScreen({super.key});",
            "",
            "  @override",
            "  Widget build(BuildContext context) {",
            "    return Scaffold(",
            "      appBar: AppBar(",
            f"        title: const Text('{_dart_text(self.config.project_name)}'),",
        ]
        lines.extend(indent_lines(actions, level=4, size=2))
        lines.extend(
            [
                "      ),",
                "      body: GridView.count(",
                "        crossAxisCount: 2,",
                "        padding: const EdgeInsets.all(16),",
                "        mainAxisSpacing: 12,",
                "        crossAxisSpacing: 12,",
                "        children: [",
            ]
        )
        lines.extend(indent_lines(tiles, level=5, size=2))
        lines.extend(["        ],", "      ),", "    );", "  }", "}", ""])
        return "\n".join(lines)

    def _list_screen(self, cls: ClassEntity, fields: List[_DartField]) -> str:
        name: str = class_identifier(cls.name)
        stem: str = table_singular(cls.name)
        route: str = f"/{url_segment(cls.name)}"
        title_field: Optional[_DartField] = next(
            (f for f in fields if f.dart_type == "String" and f.editable), None
        )
        title: str = (
            f"Text(item.{title_field.name} ?? '{name} #${{item.id}}')"
            if title_field
            else f"Text('{name} #${{item.id}}')"
        )
        return "\n".join(
            [
                "import 'package:flutter/material.dart';",
                "import 'package:go_router/go_router.dart';",
                "import 'package:provider/provider.dart';",
                "",
                f"import '../../providers/{stem}_provider.dart';",
                "import '../../widgets/common/error_widget.dart';",
                "import '../../widgets/common/loading_widget.dart';",
                "",
                f"class {name}ListScreen extends StatefulWidget {{",
                f"  const {name}ListScreen({{super.key}});",
                "",
                "  @override",
                f"  State<{name}ListScreen> createState() => _{name}ListScreenState();",
                "}",
                "",
                f"class _{name}ListScreenState extends State<{name}ListScreen> {{",
                "  @override",
                "  void initState() {",
                "    super.initState();",
                "    WidgetsBinding.instance.addPostFrameCallback(",
                f"      (_) => context.read<{name}Provider>().loadAll(),",
                "    );",
                "  }",
                "",
                "  @override",
                "  Widget build(BuildContext context) {",
                "    return Scaffold(",
                f"      appBar: AppBar(title: const Text('{_dart_text(to_title_human(cls.name))}')),",
                f"      body: Consumer<{name}Provider>(",
                "        builder: (context, provider, _) {",
                "          if (provider.isLoading) {",
                "            return const LoadingWidget();",
                "          }",
                "          if (provider.error != null) {",
                "            return AppErrorWidget(message: provider.error!, onRetry: provider.loadAll);",
                "          }",
                "          return RefreshIndicator(",
                "            onRefresh: provider.loadAll,",
                "            child: ListView.builder(",
                "              itemCount: provider.items.length,",
                "              itemBuilder: (context, index) {",
                "                final item = provider.items[index];",
                "                return ListTile(",
                f"                  title: {title},",
                f"                  onTap: () => context.push('{route}/${{item.id}}/edit'),",
                "                  trailing: IconButton(",
                "                    icon: const Icon(Icons.delete_outline),",
                "                    onPressed: () => provider.delete(item.id!),",
                "                  ),",
                "                );",
                "              },",
                "            ),",
                "          );",
                "        },",
                "      ),",
                "      floatingActionButton: FloatingActionButton(",
                f"        onPressed: () => context.push('{route}/new'),",
                "        child: const Icon(Icons.add),",
                "      ),",
                "    );",
                "  }",
                "}",
                "",
            ]
        )

    def _form_screen(self, cls: ClassEntity, fields: List[_DartField]) -> str:
        name: str = class_identifier(cls.name)
        stem: str = table_singular(cls.name)
        text_fields: List[_DartField] = [
            f for f in fields if f.form_supported and f.dart_type != "bool"
        ]
        bool_fields: List[_DartField] = [
            f for f in fields if f.form_supported and f.dart_type == "bool"
        ]

        state: List[str] = [
            f"  final _{f.name}Controller = TextEditingController();" for f in text_fields
        ]
        state.extend(f"  bool _{f.name} = false;" for f in bool_fields)

        fill: List[str] = []
        for f in text_fields:
            value: str = f"item.{f.name}?.toIso8601String()" if f.dart_type == "DateTime" else (
                f"item.{f.name}" if f.dart_type == "String" else f"item.{f.name}?.toString()"
            )
            fill.append(f"      _{f.name}Controller.text = {value} ?? '';")
        fill.extend(f"      _{f.name} = item.{f.name} ?? false;" for f in bool_fields)

        build_item: List[str] = []
        for f in text_fields:
            text: str = f"_{f.name}Controller.text"
            parse: str = {
                "int": f"int.tryParse({text})",
                "double": f"double.tryParse({text})",
                "DateTime": f"DateTime.tryParse({text})",
            }.get(f.dart_type, f"{text}.isEmpty ? null : {text}")
            build_item.append(f"      {f.name}: {parse},")
        build_item.extend(f"      {f.name}: _{f.name}," for f in bool_fields)

        widgets: List[str] = []
        for f in text_fields:
            widgets.extend(
                [
                    "CustomTextField(",
                    f"  controller: _{f.name}Controller,",
                    f"  label: '{_dart_text(f.label or to_title_human(f.name))}',",
                    f"  required: {'true' if f.required else 'false'},",
                ]
            )
            if f.dart_type in _KEYBOARD_TYPES:
                widgets.append(f"  keyboardType: {_KEYBOARD_TYPES[f.dart_type]},")
            widgets.append("),")
        for f in bool_fields:
            widgets.extend(
                [
                    "SwitchListTile(",
                    f"  title: const Text('{_dart_text(f.label or to_title_human(f.name))}'),",
                    f"  value: _{f.name},",
                    f"  onChanged: (value) => setState(() => _{f.name} = value),",
                    "),",
                ]
            )

        lines: List[str] = [
            "import 'package:flutter/material.dart';",
            "import 'package:go_router/go_router.dart';",
            "import 'package:provider/provider.dart';",
            "",
            f"import '../../models/{stem}_model.dart';",
            f"import '../../providers/{stem}_provider.dart';",
            "import '../../widgets/common/custom_text_field.dart';",
            "",
            f"class {name}FormScreen extends StatefulWidget {{",
            "  final int? id;",
            "",
            f"  const {name}FormScreen({{super.key, this.id}});",
            "",
            "  @override",
            f"  State<{name}FormScreen> createState() => _{name}FormScreenState();",
            "}",
            "",
            f"class _{name}FormScreenState extends State<{name}FormScreen> {{",
            "  final _formKey = GlobalKey<FormState>();",
            f"  {name}? _existing;",
            "  bool _saving = false;",
        ]
        lines.extend(state)
        lines.extend(
            [
                "",
                "  @override",
                "  void initState() {",
                "    super.initState();",
                "    if (widget.id != null) {",
                "      _load(widget.id!);",
                "    }",
                "  }",
                "",
                "  Future<void> _load(int id) async {",
                f"    final item = await context.read<{name}Provider>().getById(id);",
                "    if (!mounted) return;",
                "    setState(() {",
                "      _existing = item;",
            ]
        )
        lines.extend(fill)
        lines.extend(
            [
                "    });",
                "  }",
                "",
                "  Future<void> _save() async {",
                "    if (!_formKey.currentState!.validate()) return;",
                "    setState(() => _saving = true);",
                f"    final base = _existing ?? const {name}();",
                "    final item = base.copyWith(",
                "      id: widget.id,",
            ]
        )
        lines.extend(build_item)
        lines.extend(
            [
                "    );",
                "    try {",
                f"      await context.read<{name}Provider>().save(item);",
                "      if (mounted) context.pop();",
                "    } catch (e) {",
                "      if (mounted) {",
                "        ScaffoldMessenger.of(context).showSnackBar(",
                "          SnackBar(content: Text(e.toString())),",
                "        );",
                "      }",
                "    } finally {",
                "      if (mounted) setState(() => _saving = false);",
                "    }",
                "  }",
                "",
                "  @override",
                "  void dispose() {",
            ]
        )
        lines.extend(f"    _{f.name}Controller.dispose();" for f in text_fields)
        lines.extend(
            [
                "    super.dispose();",
                "  }",
                "",
                "  @override",
                "  Widget build(BuildContext context) {",
                "    return Scaffold(",
                "      appBar: AppBar(",
                f"        title: Text(widget.id == null ? 'New {name}' : 'Edit {name}'),",
                "      ),",
                "      body: Form(",
                "        key: _formKey,",
                "        child: ListView(",
                "          padding: const EdgeInsets.all(16),",
                "          children: [",
            ]
        )
        lines.extend(indent_lines(widgets, level=6, size=2))
        lines.extend(
            [
                "            const SizedBox(height: 24),",
                "            FilledButton(",
                "              onPressed: _saving ? null : _save,",
                "              child: Text(_saving ? 'Saving...' : 'Save'),",
                "            ),",
                "          ],",
                "        ),",
                "      ),",
                "    );",
                "  }",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    # -- Widgets ---------------------------------------------------------

    @staticmethod
    def _loading_widget() -> str:
        return "\n".join(
            [
                "import 'package:flutter/material.dart';",
                "",
                "class LoadingWidget extends StatelessWidget {",
                "  const LoadingWidget({super.key});",
                "",
                "  @override",
                "  Widget build(BuildContext context) {",
                "    return const Center(child: CircularProgressIndicator());",
                "  }",
                "}",
                "",
            ]
        )

    @staticmethod
    def _error_widget() -> str:
        return "\n".join(
            [
                "import 'package:flutter/material.dart';",
                "",
                "class AppErrorWidget extends StatelessWidget {",
                "  final String message;",
                "  final VoidCallback? onRetry;",
                "",
                "  const AppErrorWidget({super.key, required this.message, this.onRetry});",
                "",
                "  @override",
                "  Widget build(BuildContext context) {",
                "    return Center(",
                "      child: Padding(",
                "        padding: const EdgeInsets.all(24),",
                "        child: Column(",
                "          mainAxisSize: MainAxisSize.min,",
                "          children: [",
                "            const Icon(Icons.error_outline, size: 48),",
                "            const SizedBox(height: 12),",
                "            Text(message, textAlign: TextAlign.center),",
                "            if (onRetry != null)",
                "              TextButton(onPressed: onRetry, child: const Text('Retry')),",
                "          ],",
                "        ),",
                "      ),",
                "    );",
                "  }",
                "}",
                "",
            ]
        )

    @staticmethod
    def _custom_text_field() -> str:
        return "\n".join(
            [
                "import 'package:flutter/material.dart';",
                "",
                "class CustomTextField extends StatelessWidget {",
                "  final TextEditingController controller;",
                "  final String label;",
                "  final bool required;",
                "  final bool obscureText;",
                "  final TextInputType? keyboardType;",
                "",
                "  const CustomTextField({",
                "    super.key,",
                "    required this.controller,",
                "    required this.label,",
                "    this.required = false,",
                "    this.obscureText = false,",
                "    this.keyboardType,",
                "  });",
                "",
                "  @override",
                "  Widget build(BuildContext context) {",
                "    return Padding(",
                "      padding: const EdgeInsets.only(bottom: 12),",
                "      child: TextFormField(",
                "        controller: controller,",
                "        obscureText: obscureText,",
                "        keyboardType: keyboardType,",
                "        decoration: InputDecoration(labelText: label),",
                "        validator: (value) => required && (value == null || value.isEmpty)",
                "            ? '$label is required'",
                "            : null,",
                "      ),",
                "    );",
                "  }",
                "}",
                "",
            ]
        )

    # -- Authentication --------------------------------------------------

    def _auth_keys(self) -> Tuple[str, str]:
        auth = self.context.auth
        return json_key(auth.credential_field or ""), json_key(auth.secret_field or "")

    def _auth_service(self) -> str:
        credential, secret = self._auth_keys()
        return "\n".join(
            [
                "import 'package:dio/dio.dart';",
                "import 'package:shared_preferences/shared_preferences.dart';",
                "",
                "import '../config/api_config.dart';",
                "import 'api_service.dart';",
                "",
                "class AuthService {",
                "  static const String _tokenKey = 'jwt_token';",
                "",
                "  Dio get _dio => ApiService().dio;",
                "",
                f"  Future<String> login(String {credential}, String {secret}) async {{",
                "    try {",
                "      final response = await _dio.post(ApiConfig.login, data: {",
                f"        '{credential}': {credential},",
                f"        '{secret}': {secret},",
                "      });",
                "      return _store(response.data['token'] as String);",
                "    } on DioException catch (e) {",
                "      throw ApiException.fromDio(e);",
                "    }",
                "  }",
                "",
                "  Future<String> register(Map<String, dynamic> data) async {",
                "    try {",
                "      final response = await _dio.post(ApiConfig.register, data: data);",
                "      return _store(response.data['token'] as String);",
                "    } on DioException catch (e) {",
                "      throw ApiException.fromDio(e);",
                "    }",
                "  }",
                "",
                "  Future<String?> storedToken() async {",
                "    final prefs = await SharedPreferences.getInstance();",
                "    return prefs.getString(_tokenKey);",
                "  }",
                "",
                "  Future<void> logout() async {",
                "    final prefs = await SharedPreferences.getInstance();",
                "    await prefs.remove(_tokenKey);",
                "    ApiService().clearAuthToken();",
                "  }",
                "",
                "  Future<String> _store(String token) async {",
                "    final prefs = await SharedPreferences.getInstance();",
                "    await prefs.setString(_tokenKey, token);",
                "    ApiService().setAuthToken(token);",
                "    return token;",
                "  }",
                "}",
                "",
            ]
        )

    def _auth_provider(self) -> str:
        credential, secret = self._auth_keys()
        return "\n".join(
            [
                "import 'package:flutter/foundation.dart';",
                "",
                "import '../services/api_service.dart';",
                "import '../services/auth_service.dart';",
                "",
                "class AuthProvider with ChangeNotifier {",
                "  final AuthService _service = AuthService();",
                "",
                "  String? _token;",
                "  String? _error;",
                "",
                "  bool get isAuthenticated => _token != null;",
                "  String? get error => _error;",
                "",
                "  Future<void> restore() async {",
                "    _token = await _service.storedToken();",
                "    if (_token != null) {",
                "      ApiService().setAuthToken(_token!);",
                "    }",
                "    notifyListeners();",
                "  }",
                "",
                f"  Future<bool> login(String {credential}, String {secret}) async {{",
                f"    return _run(() => _service.login({credential}, {secret}));",
                "  }",
                "",
                "  Future<bool> register(Map<String, dynamic> data) async {",
                "    return _run(() => _service.register(data));",
                "  }",
                "",
                "  Future<void> logout() async {",
                "    await _service.logout();",
                "    _token = null;",
                "    notifyListeners();",
                "  }",
                "",
                "  Future<bool> _run(Future<String> Function() action) async {",
                "    _error = null;",
                "    try {",
                "      _token = await action();",
                "      return true;",
                "    } on ApiException catch (e) {",
                "      _error = e.message;",
                "      return false;",
                "    } finally {",
                "      notifyListeners();",
                "    }",
                "  }",
                "}",
                "",
            ]
        )

    def _login_screen(self) -> str:
        credential, secret = self._auth_keys()
        auth = self.context.auth
        return "\n".join(
            [
                "import 'package:flutter/material.dart';",
                "import 'package:go_router/go_router.dart';",
                "import 'package:provider/provider.dart';",
                "",
                "import '../../providers/auth_provider.dart';",
                "import '../../widgets/common/custom_text_field.dart';",
                "",
                "class LoginScreen extends StatefulWidget {",
                "  const LoginScreen({super.key});",
                "",
                "  @override",
                "  State<LoginScreen> createState() => _LoginScreenState();",
                "}",
                "",
                "class _LoginScreenState extends State<LoginScreen> {",
                "  final _formKey = GlobalKey<FormState>();",
                f"  final _{credential}Controller = TextEditingController();",
                f"  final _{secret}Controller = TextEditingController();",
                "",
                "  Future<void> _submit() async {",
                "    if (!_formKey.currentState!.validate()) return;",
                "    final auth = context.read<AuthProvider>();",
                "    final ok = await auth.login(",
                f"      _{credential}Controller.text.trim(),",
                f"      _{secret}Controller.text,",
                "    );",
                "    if (!mounted) return;",
                "    if (ok) {",
                "      context.go('/');",
                "    } else {",
                "      ScaffoldMessenger.of(context).showSnackBar(",
                "        SnackBar(content: Text(auth.error ?? 'Login failed')),",
                "      );",
                "    }",
                "  }",
                "",
                "  @override",
                "  void dispose() {",
                f"    _{credential}Controller.dispose();",
                f"    _{secret}Controller.dispose();",
                "    super.dispose();",
                "  }",
                "",
                "  @override",
                "  Widget build(BuildContext context) {",
                "    return Scaffold(",
                "      appBar: AppBar(title: const Text('Login')),",
                "      body: Form(",
                "        key: _formKey,",
                "        child: ListView(",
                "          padding: const EdgeInsets.all(24),",
                "          children: [",
                "            CustomTextField(",
                f"              controller: _{credential}Controller,",
                f"              label: '{_dart_text(to_title_human(auth.credential_field or ''))}',",
                "              required: true,",
                "            ),",
                "            CustomTextField(",
                f"              controller: _{secret}Controller,",
                f"              label: '{_dart_text(to_title_human(auth.secret_field or ''))}',",
                "              required: true,",
                "              obscureText: true,",
                "            ),",
                "            FilledButton(onPressed: _submit, child: const Text('Login')),",
                "            TextButton(",
                "              onPressed: () => context.push('/register'),",
                "              child: const Text('Create account'),",
                "            ),",
                "          ],",
                "        ),",
                "      ),",
                "    );",
                "  }",
                "}",
                "",
            ]
        )

    def _register_screen(self) -> str:
        user: ClassEntity = self.context.user_entity  # type: ignore[assignment]
        _credential, secret = self._auth_keys()
        fields: List[_DartField] = [
            self._attribute_field(a)
            for a in self.persisted(user)
            if a.type_name not in self.ir.class_index
        ]
        fields = [f for f in fields if f.form_supported and f.dart_type != "bool"]
        controllers: List[str] = [
            f"  final _{f.name}Controller = TextEditingController();" for f in fields
        ]
        payload: List[str] = []
        for f in fields:
            text: str = f"_{f.name}Controller.text"
            value: str = {
                "int": f"int.tryParse({text})",
                "double": f"double.tryParse({text})",
            }.get(f.dart_type, f"{text}.trim()")
            payload.append(f"      '{f.key}': {value},")
        widgets: List[str] = []
        for f in fields:
            widgets.extend(
                [
                    "CustomTextField(",
                    f"  controller: _{f.name}Controller,",
                    f"  label: '{_dart_text(f.label)}',",
                    f"  required: {'true' if f.required or f.key == secret else 'false'},",
                ]
            )
            if f.key == secret:
                widgets.append("  obscureText: true,")
            widgets.append("),")
        lines: List[str] = [
            "import 'package:flutter/material.dart';",
            "import 'package:go_router/go_router.dart';",
            "import 'package:provider/provider.dart';",
            "",
            "import '../../providers/auth_provider.dart';",
            "import '../../widgets/common/custom_text_field.dart';",
            "",
            "class RegisterScreen extends StatefulWidget {",
            "  const RegisterScreen({super.key});",
            "",
            "  @override",
            "  State<RegisterScreen> createState() => _RegisterScreenState();",
            "}",
            "",
            "class _RegisterScreenState extends State<RegisterScreen> {",
            "  final _formKey = GlobalKey<FormState>();",
            *controllers,
            "",
            "  Future<void> _submit() async {",
            "    if (!_formKey.currentState!.validate()) return;",
            "    final auth = context.read<AuthProvider>();",
            "    final ok = await auth.register({",
            *payload,
            "    });",
            "    if (!mounted) return;",
            "    if (ok) {",
            "      context.go('/');",
            "    } else {",
            "      ScaffoldMessenger.of(context).showSnackBar(",
            "        SnackBar(content: Text(auth.error ?? 'Registration failed')),",
            "      );",
            "    }",
            "  }",
            "",
            "  @override",
            "  void dispose() {",
            *(f"    _{f.name}Controller.dispose();" for f in fields),
            "    super.dispose();",
            "  }",
            "",
            "  @override",
            "  Widget build(BuildContext context) {",
            "    return Scaffold(",
            "      appBar: AppBar(title: const Text('Register')),",
            "      body: Form(",
            "        key: _formKey,",
            "        child: ListView(",
            "          padding: const EdgeInsets.all(24),",
            "          children: [",
        ]
        lines.extend(indent_lines(widgets, level=6, size=2))
        lines.extend(
            [
                "            FilledButton(onPressed: _submit, child: const Text('Register')),",
                "          ],",
                "        ),",
                "      ),",
                "    );",
                "  }",
                "}",
                "",
            ]
        )
        return "\n".join(lines)

    # -- Android ---------------------------------------------------------

    def _android_files(self) -> Dict[str, str]:
        application_id: str = self.config.package_name
        kotlin_dir: str = application_id.replace(".", "/")
        return {
            "android/app/src/main/AndroidManifest.xml": "\n".join(
                [
                    '<manifest xmlns:android="http://schemas.android.com/apk/res/android">',
                    '    <uses-permission android:name="android.permission.INTERNET"/>',
                    "    <application",
                    f'        android:label="{self.config.project_name}"',
                    '        android:name="${applicationName}"',
                    '        android:usesCleartextTraffic="true"',
                    '        android:icon="@mipmap/ic_launcher">',
                    "        <activity",
                    '            android:name=".MainActivity"',
                    '            android:exported="true"',
                    '            android:launchMode="singleTop"',
                    '            android:windowSoftInputMode="adjustResize">',
                    "            <intent-filter>",
                    '                <action android:name="android.intent.action.MAIN"/>',
                    '                <category android:name="android.intent.category.LAUNCHER"/>',
                    "            </intent-filter>",
                    "        </activity>",
                    '        <meta-data android:name="flutterEmbedding" android:value="2"/>',
                    "    </application>",
                    "</manifest>",
                    "",
                ]
            ),
            f"android/app/src/main/kotlin/{kotlin_dir}/MainActivity.kt": "\n".join(
                [
                    f"package {application_id}",
                    "",
                    "import io.flutter.embedding.android.FlutterActivity",
                    "",
                    "class MainActivity : FlutterActivity()",
                    "",
                ]
            ),
            "android/app/build.gradle": "\n".join(
                [
                    "plugins {",
                    '    id "com.android.application"',
                    '    id "kotlin-android"',
                    '    id "dev.flutter.flutter-gradle-plugin"',
                    "}",
                    "",
                    "android {",
                    f'    namespace "{application_id}"',
                    "    compileSdk 34",
                    "",
                    "    defaultConfig {",
                    f'        applicationId "{application_id}"',
                    "        minSdk 21",
                    "        targetSdk 34",
                    "        versionCode 1",
                    f'        versionName "{self.config.project_version}"',
                    "    }",
                    "}",
                    "",
                    "flutter {",
                    "    source '../..'",
                    "}",
                    "",
                ]
            ),
            "android/build.gradle": "\n".join(
                [
                    "allprojects {",
                    "    repositories {",
                    "        google()",
                    "        mavenCentral()",
                    "    }",
                    "}",
                    "",
                ]
            ),
            "android/settings.gradle": "\n".join(
                [
                    "pluginManagement {",
                    "    def flutterSdkPath = {",
                    "        def properties = new Properties()",
                    '        file("local.properties").withInputStream { properties.load(it) }',
                    '        return properties.getProperty("flutter.sdk")',
                    "    }()",
                    '    includeBuild("$flutterSdkPath/packages/flutter_tools/gradle")',
                    "    repositories {",
                    "        google()",
                    "        mavenCentral()",
                    "        gradlePluginPortal()",
                    "    }",
                    "}",
                    "",
                    "plugins {",
                    '    id "dev.flutter.flutter-plugin-loader" version "1.0.0"',
                    '    id "com.android.application" version "8.1.0" apply false',
                    '    id "org.jetbrains.kotlin.android" version "1.9.22" apply false',
                    "}",
                    "",
                    'include ":app"',
                    "",
                ]
            ),
            "android/gradle.properties": "\n".join(
                [
                    "org.gradle.jvmargs=-Xmx4G",
                    "android.useAndroidX=true",
                    "android.enableJetifier=true",
                    "",
                ]
            ),
        }


def _dart_text(value: str) -> str:
    """Escape a value for a single-quoted Dart string."""
    return value.replace("\\", "\\\\").replace("'", "\\'").replace("$", "\\$")


__all__: List[str] = ["MobileGenerator"]
