"""Built-in template sources.

Raw template text for every file the scaffolder can emit, keyed by template
identifier and, where the text differs per variant, by architecture style or
database provider.  A ``None`` selector matches any value.  This module holds
data only; variant selection lives in ``loader.py``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .options import Architecture, DatabaseProvider


class TemplateId(str, Enum):
    SOLUTION = "solution"
    DIRECTORY_BUILD_PROPS = "directory-build-props"
    DIRECTORY_PACKAGES_PROPS = "directory-packages-props"
    API_PROJECT = "api-project"
    API_PROGRAM = "api-program"
    APP_SETTINGS = "app-settings"
    APP_SETTINGS_DEVELOPMENT = "app-settings-development"
    GITIGNORE = "gitignore"
    EDITORCONFIG = "editorconfig"
    GLOBAL_JSON = "global-json"
    README = "readme"
    PROJECT_MANIFEST = "project-manifest"
    DOCKERFILE = "dockerfile"
    DOCKER_COMPOSE = "docker-compose"
    APPHOST_PROJECT = "apphost-project"
    APPHOST_PROGRAM = "apphost-program"
    BLAZOR_PROJECT = "blazor-project"
    BLAZOR_PROGRAM = "blazor-program"
    SAMPLE_MODULE_PROJECT = "sample-module-project"
    SAMPLE_MODULE_CLASS = "sample-module-class"
    SAMPLE_ENDPOINT = "sample-endpoint"


@dataclass(frozen=True)
class TemplateSource:
    identifier: TemplateId
    text: str
    architecture: Optional[Architecture] = None
    database: Optional[DatabaseProvider] = None


# ---------------------------------------------------------------------------
# Solution and build files
# ---------------------------------------------------------------------------

SOLUTION = """\
<Solution>
  <Folder Name="/src/">
    <Project Path="src/{{ name }}.Api/{{ name }}.Api.csproj" />
{% if include_aspire %}
    <Project Path="src/{{ name }}.AppHost/{{ name }}.AppHost.csproj" />
{% endif %}
{% if is_fullstack %}
    <Project Path="src/{{ name }}.Blazor/{{ name }}.Blazor.csproj" />
{% endif %}
  </Folder>
{% if include_sample_module %}
  <Folder Name="/src/Modules/">
{% for module in modules %}
{% if module.is_sample %}
    <Project Path="src/Modules/{{ module.name }}/{{ module.project }}/{{ module.project }}.csproj" />
{% endif %}
{% endfor %}
  </Folder>
{% endif %}
  <Folder Name="/Solution Items/">
    <File Path="Directory.Build.props" />
    <File Path="Directory.Packages.props" />
    <File Path="global.json" />
  </Folder>
</Solution>
"""

DIRECTORY_BUILD_PROPS = """\
<Project>
  <PropertyGroup>
    <TargetFramework>{{ target_framework }}</TargetFramework>
    <Nullable>enable</Nullable>
    <ImplicitUsings>enable</ImplicitUsings>
    <TreatWarningsAsErrors>true</TreatWarningsAsErrors>
    <Authors>{{ name }}</Authors>
    <Copyright>Copyright (c) {{ year }} {{ name }}</Copyright>
  </PropertyGroup>
</Project>
"""

DIRECTORY_PACKAGES_PROPS = """\
<Project>
  <PropertyGroup>
    <ManagePackageVersionsCentrally>true</ManagePackageVersionsCentrally>
  </PropertyGroup>
  <ItemGroup>
{% for package in packages %}
    <PackageVersion Include="{{ package.name }}" Version="{{ package.version }}" />
{% endfor %}
  </ItemGroup>
</Project>
"""

GLOBAL_JSON = """\
{
  "sdk": {
    "version": "{{ dotnet_sdk_version }}",
    "rollForward": "latestFeature"
  }
}
"""

PROJECT_MANIFEST = """\
{
  "fshVersion": "{{ framework_version }}",
  "projectId": "{{ solution_guid }}",
  "name": "{{ name }}",
  "projectType": "{{ project_type }}",
  "architecture": "{{ architecture }}",
  "database": "{{ database }}",
  "features": {
    "aspire": {{ include_aspire }},
    "docker": {{ include_docker }},
    "sampleModule": {{ include_sample_module }}
  },
  "modules": [
{% for module in modules %}
    "{{ module.name }}",
{% endfor %}
    "Platform"
  ]
}
"""

# ---------------------------------------------------------------------------
# API host
# ---------------------------------------------------------------------------

API_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk.Web">
  <PropertyGroup>
    <RootNamespace>{{ root_namespace }}.Api</RootNamespace>
    <UserSecretsId>{{ api_project_guid | lower }}</UserSecretsId>
  </PropertyGroup>
  <ItemGroup>
    <PackageReference Include="FSH.Framework.Web" />
    <PackageReference Include="Microsoft.AspNetCore.OpenApi" />
    <PackageReference Include="Microsoft.EntityFrameworkCore.Design" PrivateAssets="all" />
    <PackageReference Include="Scalar.AspNetCore" />
    <PackageReference Include="Serilog.AspNetCore" />
{% if database == "PostgreSQL" %}
    <PackageReference Include="Npgsql.EntityFrameworkCore.PostgreSQL" />
{% elif database == "SqlServer" %}
    <PackageReference Include="Microsoft.EntityFrameworkCore.SqlServer" />
{% else %}
    <PackageReference Include="Microsoft.EntityFrameworkCore.Sqlite" />
{% endif %}
  </ItemGroup>
  <ItemGroup>
{% for module in modules %}
{% if module.is_sample %}
    <ProjectReference Include="../Modules/{{ module.name }}/{{ module.project }}/{{ module.project }}.csproj" />
{% else %}
    <PackageReference Include="{{ module.project }}" />
{% endif %}
{% endfor %}
  </ItemGroup>
</Project>
"""

API_PROGRAM_MONOLITH = """\
using FSH.Framework.Web;
{% for module in modules %}
using {{ module.namespace }};
{% endfor %}
using Scalar.AspNetCore;
using Serilog;

var builder = WebApplication.CreateBuilder(args);
builder.Host.UseSerilog((context, logger) => logger.ReadFrom.Configuration(context.Configuration));

builder.Services.AddFshPlatform(builder.Configuration);
{% for module in modules %}
builder.Services.Add{{ module.name }}Module(builder.Configuration);
{% endfor %}
builder.Services.AddOpenApi();

var app = builder.Build();

app.UseFshPlatform();
{% for module in modules %}
app.Map{{ module.name }}Endpoints();
{% endfor %}
app.MapOpenApi();
app.MapScalarApiReference();

await app.RunAsync();
"""

API_PROGRAM_MODULAR = """\
using FSH.Framework.Web;
using FSH.Framework.Web.Modules;
{% for module in modules %}
using {{ module.namespace }};
{% endfor %}
using Scalar.AspNetCore;
using Serilog;

var builder = WebApplication.CreateBuilder(args);
builder.Host.UseSerilog((context, logger) => logger.ReadFrom.Configuration(context.Configuration));

builder.Services.AddFshPlatform(builder.Configuration);
builder.Services.AddModules(builder.Configuration,
[
{% for module in modules %}
    new {{ module.name }}Module(),
{% endfor %}
]);
builder.Services.AddOpenApi();

var app = builder.Build();

app.UseFshPlatform();
app.MapModuleEndpoints();
app.MapOpenApi();
app.MapScalarApiReference();

await app.RunAsync();
"""

API_PROGRAM_MICROSERVICES = """\
using FSH.Framework.Web;
{% for module in modules %}
using {{ module.namespace }};
{% endfor %}
using Scalar.AspNetCore;
using Serilog;

var builder = WebApplication.CreateBuilder(args);
builder.Host.UseSerilog((context, logger) => logger.ReadFrom.Configuration(context.Configuration));

// Each container hosts one module, selected by Hosting:Module ("all" hosts every module).
var hostedModule = builder.Configuration["Hosting:Module"] ?? "all";

builder.Services.AddFshPlatform(builder.Configuration);
{% for module in modules %}
if (hostedModule is "all" or "{{ module.name | lower }}")
{
    builder.Services.Add{{ module.name }}Module(builder.Configuration);
}
{% endfor %}
builder.Services.AddOpenApi();

var app = builder.Build();

app.UseFshPlatform();
{% for module in modules %}
if (hostedModule is "all" or "{{ module.name | lower }}")
{
    app.Map{{ module.name }}Endpoints();
}
{% endfor %}
app.MapOpenApi();
app.MapScalarApiReference();

await app.RunAsync();
"""

# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

APP_SETTINGS_POSTGRESQL = """\
{
  "DatabaseOptions": {
    "Provider": "{{ db_provider_key }}",
    "ConnectionString": "{{ connection_string }}",
    "MigrationsAssembly": "{{ name }}.Migrations.PostgreSQL"
  },
  "HangfireOptions": {
    "Storage": "PostgreSql",
    "Schema": "hangfire"
  },
  "Serilog": {
    "MinimumLevel": {
      "Default": "Information",
      "Override": {
        "Microsoft.EntityFrameworkCore": "Warning",
        "Npgsql": "Warning"
      }
    }
  },
  "AllowedHosts": "*"
}
"""

APP_SETTINGS_SQLSERVER = """\
{
  "DatabaseOptions": {
    "Provider": "{{ db_provider_key }}",
    "ConnectionString": "{{ connection_string }}",
    "MigrationsAssembly": "{{ name }}.Migrations.MSSQL"
  },
  "HangfireOptions": {
    "Storage": "SqlServer",
    "Schema": "hangfire"
  },
  "Serilog": {
    "MinimumLevel": {
      "Default": "Information",
      "Override": {
        "Microsoft.EntityFrameworkCore": "Warning"
      }
    }
  },
  "AllowedHosts": "*"
}
"""

APP_SETTINGS_SQLITE = """\
{
  "DatabaseOptions": {
    "Provider": "{{ db_provider_key }}",
    "ConnectionString": "{{ connection_string }}",
    "EnsureCreated": true
  },
  "HangfireOptions": {
    "Storage": "InMemory"
  },
  "Serilog": {
    "MinimumLevel": {
      "Default": "Information",
      "Override": {
        "Microsoft.EntityFrameworkCore": "Warning"
      }
    }
  },
  "AllowedHosts": "*"
}
"""

APP_SETTINGS_DEVELOPMENT = """\
{
  "Serilog": {
    "MinimumLevel": {
      "Default": "Debug"
    }
  },
  "OpenApiOptions": {
    "Title": "{{ name }} API",
    "Version": "v1"
  }
}
"""

# ---------------------------------------------------------------------------
# Repository files
# ---------------------------------------------------------------------------

GITIGNORE = """\
## .NET
bin/
obj/
*.user
*.suo
.vs/
.idea/
TestResults/

## Local databases and secrets
*.db
*.db-shm
*.db-wal
appsettings.Local.json
.env
"""

EDITORCONFIG = """\
root = true

[*]
charset = utf-8
end_of_line = lf
indent_style = space
insert_final_newline = true
trim_trailing_whitespace = true

[*.cs]
indent_size = 4
dotnet_sort_system_directives_first = true
csharp_style_namespace_declarations = file_scoped:warning

[*.{json,props,csproj,slnx,yml}]
indent_size = 2
"""

README = """\
# {{ name }}

Generated with FSH {{ framework_version }}: {{ architecture }} architecture on {{ database }}.

## Getting started

```bash
dotnet run --project src/{{ name }}.Api
```
{% if include_aspire %}

Run the whole stack through Aspire:

```bash
dotnet run --project src/{{ name }}.AppHost
```
{% endif %}
{% if include_docker %}

Or with containers:

```bash
docker compose up --build
```
{% endif %}

## Modules

{% for module in modules %}
- {{ module.name }}
{% endfor %}
"""

# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

DOCKERFILE = """\
FROM mcr.microsoft.com/dotnet/aspnet:{{ dotnet_channel }} AS base
WORKDIR /app
EXPOSE 8080

FROM mcr.microsoft.com/dotnet/sdk:{{ dotnet_channel }} AS build
WORKDIR /src
COPY ["Directory.Build.props", "Directory.Packages.props", "global.json", "./"]
COPY ["src/{{ name }}.Api/{{ name }}.Api.csproj", "src/{{ name }}.Api/"]
RUN dotnet restore "src/{{ name }}.Api/{{ name }}.Api.csproj"
COPY . .
RUN dotnet publish "src/{{ name }}.Api/{{ name }}.Api.csproj" -c Release -o /app/publish

FROM base AS final
WORKDIR /app
COPY --from=build /app/publish .
ENTRYPOINT ["dotnet", "{{ name }}.Api.dll"]
"""

DOCKER_COMPOSE_POSTGRESQL = """\
services:
{% for service in services %}
  {{ service.name }}:
    build:
      context: .
      dockerfile: src/{{ service.project }}/Dockerfile
    ports:
      - "{{ service.port }}:8080"
    environment:
      - ASPNETCORE_ENVIRONMENT=Development
      - Hosting__Module={{ service.module }}
      - DatabaseOptions__ConnectionString=Server=postgres;Port=5432;Database={{ project_slug }};User Id=postgres;Password=postgres
    depends_on:
      - postgres
{% endfor %}
  postgres:
    image: postgres:17-alpine
    environment:
      - POSTGRES_USER=postgres
      - POSTGRES_PASSWORD=postgres
      - POSTGRES_DB={{ project_slug }}
    ports:
      - "5432:5432"
    volumes:
      - postgres-data:/var/lib/postgresql/data

volumes:
  postgres-data:
"""

DOCKER_COMPOSE_SQLSERVER = """\
services:
{% for service in services %}
  {{ service.name }}:
    build:
      context: .
      dockerfile: src/{{ service.project }}/Dockerfile
    ports:
      - "{{ service.port }}:8080"
    environment:
      - ASPNETCORE_ENVIRONMENT=Development
      - Hosting__Module={{ service.module }}
      - DatabaseOptions__ConnectionString=Server=sqlserver,1433;Database={{ project_slug }};User Id=sa;Password=Your_password123;TrustServerCertificate=True
    depends_on:
      - sqlserver
{% endfor %}
  sqlserver:
    image: mcr.microsoft.com/mssql/server:2022-latest
    environment:
      - ACCEPT_EULA=Y
      - MSSQL_SA_PASSWORD=Your_password123
    ports:
      - "1433:1433"
    volumes:
      - sqlserver-data:/var/opt/mssql

volumes:
  sqlserver-data:
"""

DOCKER_COMPOSE_SQLITE = """\
services:
{% for service in services %}
  {{ service.name }}:
    build:
      context: .
      dockerfile: src/{{ service.project }}/Dockerfile
    ports:
      - "{{ service.port }}:8080"
    environment:
      - ASPNETCORE_ENVIRONMENT=Development
      - Hosting__Module={{ service.module }}
      - DatabaseOptions__ConnectionString=Data Source=/data/{{ project_slug }}.db
    volumes:
      - sqlite-data:/data
{% endfor %}

volumes:
  sqlite-data:
"""

# ---------------------------------------------------------------------------
# Aspire AppHost
# ---------------------------------------------------------------------------

APPHOST_PROJECT = """\
<Project Sdk="Aspire.AppHost.Sdk/13.0.0">
  <PropertyGroup>
    <OutputType>Exe</OutputType>
    <IsAspireHost>true</IsAspireHost>
  </PropertyGroup>
  <ItemGroup>
    <PackageReference Include="Aspire.Hosting.AppHost" />
{% if database == "PostgreSQL" %}
    <PackageReference Include="Aspire.Hosting.PostgreSQL" />
{% elif database == "SqlServer" %}
    <PackageReference Include="Aspire.Hosting.SqlServer" />
{% endif %}
  </ItemGroup>
  <ItemGroup>
    <ProjectReference Include="../{{ name }}.Api/{{ name }}.Api.csproj" />
  </ItemGroup>
</Project>
"""

APPHOST_PROGRAM_POSTGRESQL = """\
var builder = DistributedApplication.CreateBuilder(args);

var postgres = builder.AddPostgres("postgres").WithDataVolume();
var database = postgres.AddDatabase("{{ project_slug }}");

builder.AddProject<Projects.{{ project_symbol }}_Api>("api")
    .WithReference(database)
    .WaitFor(database);

await builder.Build().RunAsync();
"""

APPHOST_PROGRAM_SQLSERVER = """\
var builder = DistributedApplication.CreateBuilder(args);

var sql = builder.AddSqlServer("sqlserver").WithDataVolume();
var database = sql.AddDatabase("{{ project_slug }}");

builder.AddProject<Projects.{{ project_symbol }}_Api>("api")
    .WithReference(database)
    .WaitFor(database);

await builder.Build().RunAsync();
"""

APPHOST_PROGRAM_SQLITE = """\
var builder = DistributedApplication.CreateBuilder(args);

builder.AddProject<Projects.{{ project_symbol }}_Api>("api");

await builder.Build().RunAsync();
"""

# ---------------------------------------------------------------------------
# Blazor client
# ---------------------------------------------------------------------------

BLAZOR_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk.BlazorWebAssembly">
  <PropertyGroup>
    <RootNamespace>{{ root_namespace }}.Blazor</RootNamespace>
  </PropertyGroup>
  <ItemGroup>
    <PackageReference Include="Microsoft.AspNetCore.Components.WebAssembly" />
    <PackageReference Include="MudBlazor" />
  </ItemGroup>
</Project>
"""

BLAZOR_PROGRAM = """\
using Microsoft.AspNetCore.Components.WebAssembly.Hosting;
using MudBlazor.Services;

var builder = WebAssemblyHostBuilder.CreateDefault(args);

var apiBaseUrl = builder.Configuration["ApiBaseUrl"] ?? builder.HostEnvironment.BaseAddress;
builder.Services.AddScoped(_ => new HttpClient { BaseAddress = new Uri(apiBaseUrl) });
builder.Services.AddMudServices();

await builder.Build().RunAsync();
"""

# ---------------------------------------------------------------------------
# Sample module
# ---------------------------------------------------------------------------

SAMPLE_MODULE_PROJECT = """\
<Project Sdk="Microsoft.NET.Sdk">
  <PropertyGroup>
    <RootNamespace>{{ root_namespace }}.Modules.Catalog</RootNamespace>
  </PropertyGroup>
  <ItemGroup>
    <FrameworkReference Include="Microsoft.AspNetCore.App" />
  </ItemGroup>
  <ItemGroup>
    <PackageReference Include="FSH.Framework.Web" />
    <PackageReference Include="FluentValidation.DependencyInjectionExtensions" />
    <PackageReference Include="Mediator.Abstractions" />
    <PackageReference Include="Mediator.SourceGenerator" PrivateAssets="all" />
  </ItemGroup>
</Project>
"""

SAMPLE_MODULE_CLASS = """\
using FluentValidation;
using FSH.Framework.Web.Modules;
using {{ root_namespace }}.Modules.Catalog.Features.GetProducts;
using Microsoft.AspNetCore.Builder;
using Microsoft.AspNetCore.Routing;
using Microsoft.Extensions.Configuration;
using Microsoft.Extensions.DependencyInjection;

namespace {{ root_namespace }}.Modules.Catalog;

public sealed class CatalogModule : IModule
{
    public void ConfigureServices(IServiceCollection services, IConfiguration configuration)
    {
        services.AddValidatorsFromAssembly(typeof(CatalogModule).Assembly);
    }

    public void MapEndpoints(IEndpointRouteBuilder endpoints)
    {
        var group = endpoints.MapGroup("/api/v1/catalog").WithTags("Catalog");
        group.MapGetProductsEndpoint();
    }
}

public static class CatalogModuleExtensions
{
    public static IServiceCollection AddCatalogModule(this IServiceCollection services, IConfiguration configuration)
    {
        new CatalogModule().ConfigureServices(services, configuration);
        return services;
    }

    public static IEndpointRouteBuilder MapCatalogEndpoints(this IEndpointRouteBuilder endpoints)
    {
        new CatalogModule().MapEndpoints(endpoints);
        return endpoints;
    }
}
"""

SAMPLE_ENDPOINT = """\
using Microsoft.AspNetCore.Builder;
using Microsoft.AspNetCore.Http;
using Microsoft.AspNetCore.Routing;

namespace {{ root_namespace }}.Modules.Catalog.Features.GetProducts;

public sealed record ProductDto(Guid Id, string Name, decimal Price);

public static class GetProductsEndpoint
{
    public static RouteHandlerBuilder MapGetProductsEndpoint(this IEndpointRouteBuilder endpoints) =>
        endpoints.MapGet("/products", () => TypedResults.Ok(Array.Empty<ProductDto>()))
            .WithName("GetProducts")
            .WithSummary("List catalog products");
}
"""


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_A = Architecture
_D = DatabaseProvider

BUILTIN_SOURCES: tuple[TemplateSource, ...] = (
    TemplateSource(TemplateId.SOLUTION, SOLUTION),
    TemplateSource(TemplateId.DIRECTORY_BUILD_PROPS, DIRECTORY_BUILD_PROPS),
    TemplateSource(TemplateId.DIRECTORY_PACKAGES_PROPS, DIRECTORY_PACKAGES_PROPS),
    TemplateSource(TemplateId.GLOBAL_JSON, GLOBAL_JSON),
    TemplateSource(TemplateId.PROJECT_MANIFEST, PROJECT_MANIFEST),
    TemplateSource(TemplateId.API_PROJECT, API_PROJECT),
    TemplateSource(TemplateId.API_PROGRAM, API_PROGRAM_MONOLITH, architecture=_A.MONOLITH),
    TemplateSource(TemplateId.API_PROGRAM, API_PROGRAM_MODULAR, architecture=_A.MODULAR_MONOLITH),
    TemplateSource(TemplateId.API_PROGRAM, API_PROGRAM_MICROSERVICES, architecture=_A.MICROSERVICES),
    TemplateSource(TemplateId.APP_SETTINGS, APP_SETTINGS_POSTGRESQL, database=_D.POSTGRESQL),
    TemplateSource(TemplateId.APP_SETTINGS, APP_SETTINGS_SQLSERVER, database=_D.SQL_SERVER),
    TemplateSource(TemplateId.APP_SETTINGS, APP_SETTINGS_SQLITE, database=_D.SQLITE),
    TemplateSource(TemplateId.APP_SETTINGS_DEVELOPMENT, APP_SETTINGS_DEVELOPMENT),
    TemplateSource(TemplateId.GITIGNORE, GITIGNORE),
    TemplateSource(TemplateId.EDITORCONFIG, EDITORCONFIG),
    TemplateSource(TemplateId.README, README),
    TemplateSource(TemplateId.DOCKERFILE, DOCKERFILE),
    TemplateSource(TemplateId.DOCKER_COMPOSE, DOCKER_COMPOSE_POSTGRESQL, database=_D.POSTGRESQL),
    TemplateSource(TemplateId.DOCKER_COMPOSE, DOCKER_COMPOSE_SQLSERVER, database=_D.SQL_SERVER),
    TemplateSource(TemplateId.DOCKER_COMPOSE, DOCKER_COMPOSE_SQLITE, database=_D.SQLITE),
    TemplateSource(TemplateId.APPHOST_PROJECT, APPHOST_PROJECT),
    TemplateSource(TemplateId.APPHOST_PROGRAM, APPHOST_PROGRAM_POSTGRESQL, database=_D.POSTGRESQL),
    TemplateSource(TemplateId.APPHOST_PROGRAM, APPHOST_PROGRAM_SQLSERVER, database=_D.SQL_SERVER),
    TemplateSource(TemplateId.APPHOST_PROGRAM, APPHOST_PROGRAM_SQLITE, database=_D.SQLITE),
    TemplateSource(TemplateId.BLAZOR_PROJECT, BLAZOR_PROJECT),
    TemplateSource(TemplateId.BLAZOR_PROGRAM, BLAZOR_PROGRAM),
    TemplateSource(TemplateId.SAMPLE_MODULE_PROJECT, SAMPLE_MODULE_PROJECT),
    TemplateSource(TemplateId.SAMPLE_MODULE_CLASS, SAMPLE_MODULE_CLASS),
    TemplateSource(TemplateId.SAMPLE_ENDPOINT, SAMPLE_ENDPOINT),
)
